"""
Models module - internal domain entities.

Difference from schemas:
- Models: what the engine stores and mutates
- Schemas: API contract (what clients send/receive)
"""
from app.models.entities import (
    ACTIVE_APPLICATION_STATUSES,
    WILDCARD_MAJOR,
    Application,
    ApplicationStatus,
    CompanyRepresentative,
    InternshipLevel,
    InternshipOpportunity,
    Major,
    OpportunityStatus,
    Staff,
    Student,
    User,
    UserRole,
)

__all__ = [
    "ACTIVE_APPLICATION_STATUSES",
    "WILDCARD_MAJOR",
    "Application",
    "ApplicationStatus",
    "CompanyRepresentative",
    "InternshipLevel",
    "InternshipOpportunity",
    "Major",
    "OpportunityStatus",
    "Staff",
    "Student",
    "User",
    "UserRole",
]
