"""
Shared fixtures: a fixed-date ticking clock, a small cast of users and a
freshly built engine per test.
"""

from datetime import date, datetime, timedelta

import pytest

from app.core.config import Settings
from app.models import (
    CompanyRepresentative,
    InternshipLevel,
    Major,
    Staff,
    Student,
)
from app.services.placement_engine import build_engine

TODAY = date(2026, 3, 10)


class TickingClock:
    """Returns TODAY 09:00 and moves one second forward on every call."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture
def clock():
    return TickingClock(datetime(TODAY.year, TODAY.month, TODAY.day, 9, 0, 0))


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        load_on_startup=False,
        save_on_shutdown=False,
    )


@pytest.fixture
def users():
    return [
        Student(user_id="S_CSC_Y3", name="Alice Tan", year_of_study=3, major=Major.CSC),
        Student(user_id="S_CSC_Y2", name="Ben Lim", year_of_study=2, major=Major.CSC),
        Student(user_id="S_CSC_Y4", name="Chloe Ng", year_of_study=4, major=Major.CSC),
        Student(user_id="S_EEE_Y3", name="Dev Kumar", year_of_study=3, major=Major.EEE),
        CompanyRepresentative(user_id="rep1", name="Rita Ong", company_name="Acme", approved=True),
        CompanyRepresentative(user_id="rep2", name="Sam Koh", company_name="Globex", approved=True),
        CompanyRepresentative(user_id="rep_new", name="Tom Goh", company_name="Initech", approved=False),
        Staff(user_id="staff1", name="Uma Lee", department="CCDS"),
    ]


@pytest.fixture
def engine(settings, users, clock):
    return build_engine(settings, users=users, clock=clock)


@pytest.fixture
def post_opportunity(engine):
    """
    Create (and by default approve) a posting; returns its ID.

    Defaults: BASIC, CSC, open from 5 days ago to 20 days ahead, 2 slots.
    """
    def _post(rep_id="rep1", approve=True, **overrides):
        fields = dict(
            title="Backend Intern",
            level=InternshipLevel.BASIC,
            preferred_major=Major.CSC,
            opening_date=TODAY - timedelta(days=5),
            closing_date=TODAY + timedelta(days=20),
            total_slots=2,
        )
        fields.update(overrides)
        result = engine.allocation.create_opportunity(rep_id, **fields)
        assert result.ok, result.message
        opportunity_id = result.value.opportunity_id
        if approve:
            assert engine.allocation.approve_opportunity(opportunity_id).ok
        return opportunity_id

    return _post


@pytest.fixture
def snapshot(engine):
    """Full dump of engine state, for fail-closed assertions."""
    def _snapshot():
        return (
            sorted((o.model_dump() for o in engine.opportunities.all()), key=lambda d: d["opportunity_id"]),
            sorted((a.model_dump() for a in engine.applications.all()), key=lambda d: d["application_id"]),
            sorted((u.model_dump() for u in engine.identity.all_users()), key=lambda d: d["user_id"]),
        )

    return _snapshot
