"""
Database module - in-memory stores, identity store and SQL persistence.
"""
from app.db.database import SqlPersistence
from app.db.identity import IdentityStore, InMemoryIdentityStore
from app.db.stores import (
    ApplicationRepository,
    IdGenerator,
    InMemoryApplicationStore,
    InMemoryOpportunityStore,
    OpportunityRepository,
)

__all__ = [
    "SqlPersistence",
    "IdentityStore",
    "InMemoryIdentityStore",
    "ApplicationRepository",
    "IdGenerator",
    "InMemoryApplicationStore",
    "InMemoryOpportunityStore",
    "OpportunityRepository",
]
