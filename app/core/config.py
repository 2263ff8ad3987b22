"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values, including
the placement policy limits enforced by the allocation engine.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Persistence (SQLite by default, any SQLAlchemy URL works)
    database_url: str = "sqlite:///./placement.db"
    load_on_startup: bool = True
    save_on_shutdown: bool = True

    # Placement policy
    max_applications_per_student: int = 3
    max_opportunities_per_representative: int = 5
    min_slots_per_opportunity: int = 1
    max_slots_per_opportunity: int = 10

    # When a staff member approves the withdrawal of an accepted placement,
    # give the slot back and reopen a Filled opportunity.
    release_slot_on_withdrawal: bool = True

    # App
    debug: bool = False
    log_level: str = "INFO"

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PLACEMENT_",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
