"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Enums are shared with the domain models in app.models.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import date, datetime

from app.models import (
    Application,
    ApplicationStatus,
    InternshipLevel,
    InternshipOpportunity,
    Major,
    OpportunityStatus,
)


# ============================================================
# INTERNSHIP SCHEMAS
# ============================================================

class InternshipCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    level: InternshipLevel = InternshipLevel.BASIC
    preferred_major: Major = Major.OTHER
    opening_date: date
    closing_date: date
    # Range (1-10) is a policy setting, checked by the engine
    total_slots: int = Field(1, ge=0)

class InternshipUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    level: Optional[InternshipLevel] = None
    preferred_major: Optional[Major] = None
    opening_date: Optional[date] = None
    closing_date: Optional[date] = None
    total_slots: Optional[int] = Field(None, ge=0)

class VisibilityUpdate(BaseModel):
    visible: bool

class InternshipResponse(BaseModel):
    opportunity_id: str
    title: str
    description: str
    level: InternshipLevel
    preferred_major: Major
    opening_date: date
    closing_date: date
    status: OpportunityStatus
    company_name: str
    representative_id: str
    total_slots: int
    filled_slots: int
    available_slots: int
    visible: bool
    applicant_count: int

    @classmethod
    def from_entity(cls, opportunity: InternshipOpportunity) -> "InternshipResponse":
        return cls(
            **opportunity.model_dump(exclude={"applicant_ids"}),
            available_slots=opportunity.available_slots,
            applicant_count=len(opportunity.applicant_ids),
        )


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class WithdrawalCreate(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

class ApplicationResponse(BaseModel):
    application_id: str
    student_id: str
    opportunity_id: str
    status: ApplicationStatus
    submitted_at: datetime
    status_updated_at: datetime
    withdrawal_reason: Optional[str] = None
    withdrawal_requested: bool
    withdrawal_approved: bool

    @classmethod
    def from_entity(cls, application: Application) -> "ApplicationResponse":
        return cls(**application.model_dump())

class PlacementResponse(BaseModel):
    application: ApplicationResponse
    withdrawn_application_ids: List[str] = []


# ============================================================
# REPRESENTATIVE SCHEMAS
# ============================================================

class RepresentativeResponse(BaseModel):
    user_id: str
    name: str
    company_name: str
    department: str
    position: str
    approved: bool
    created_opportunities: List[str] = []


# ============================================================
# ANALYTICS SCHEMAS
# ============================================================

class StatisticsResponse(BaseModel):
    applications: Dict[str, int]
    opportunities: Dict[str, int]


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
