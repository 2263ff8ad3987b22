"""
Domain entities - the records the engine owns or mutates.

Cross-references are always IDs (a Student holds opportunity IDs, an
opportunity holds student IDs), never object references. Stores are keyed
by those IDs, so every hop between entities is a lookup.
"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


# ============================================================
# ENUMS
# ============================================================

class Major(str, Enum):
    CSC = "CSC"
    EEE = "EEE"
    MAE = "MAE"
    CEE = "CEE"
    MSE = "MSE"
    CBE = "CBE"
    OTHER = "OTHER"  # wildcard when used as a preferred major

    @property
    def display_name(self) -> str:
        return MAJOR_DISPLAY_NAMES[self]


MAJOR_DISPLAY_NAMES = {
    Major.CSC: "Computer Science",
    Major.EEE: "Electrical & Electronic Engineering",
    Major.MAE: "Mechanical & Aerospace Engineering",
    Major.CEE: "Civil & Environmental Engineering",
    Major.MSE: "Materials Science & Engineering",
    Major.CBE: "Chemical & Biomolecular Engineering",
    Major.OTHER: "Other",
}

WILDCARD_MAJOR = Major.OTHER


class InternshipLevel(str, Enum):
    BASIC = "BASIC"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class OpportunityStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FILLED = "FILLED"


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESSFUL = "SUCCESSFUL"
    UNSUCCESSFUL = "UNSUCCESSFUL"
    WITHDRAWN = "WITHDRAWN"


# Statuses a student may still withdraw from (or be cascaded out of)
ACTIVE_APPLICATION_STATUSES = (ApplicationStatus.PENDING, ApplicationStatus.SUCCESSFUL)


class UserRole(str, Enum):
    student = "student"
    representative = "representative"
    staff = "staff"


# ============================================================
# USERS (tagged variant on `role`)
# ============================================================

class Student(BaseModel):
    role: Literal[UserRole.student] = UserRole.student
    user_id: str
    name: str
    year_of_study: int = Field(..., ge=1, le=4)
    major: Major
    applied_opportunities: List[str] = []
    accepted_opportunity: Optional[str] = None

    @property
    def has_accepted_placement(self) -> bool:
        return self.accepted_opportunity is not None


class CompanyRepresentative(BaseModel):
    role: Literal[UserRole.representative] = UserRole.representative
    user_id: str
    name: str
    company_name: str
    department: str = ""
    position: str = ""
    approved: bool = False
    created_opportunities: List[str] = []


class Staff(BaseModel):
    role: Literal[UserRole.staff] = UserRole.staff
    user_id: str
    name: str
    department: str = ""


User = Annotated[Union[Student, CompanyRepresentative, Staff], Field(discriminator="role")]


# ============================================================
# OPPORTUNITIES
# ============================================================

class InternshipOpportunity(BaseModel):
    opportunity_id: str
    title: str
    description: str = ""
    level: InternshipLevel
    preferred_major: Major
    opening_date: date
    closing_date: date
    status: OpportunityStatus = OpportunityStatus.PENDING
    company_name: str = ""
    representative_id: str
    total_slots: int
    filled_slots: int = 0
    visible: bool = False
    applicant_ids: List[str] = []

    @property
    def available_slots(self) -> int:
        return self.total_slots - self.filled_slots

    def add_applicant(self, student_id: str) -> None:
        if student_id not in self.applicant_ids:
            self.applicant_ids.append(student_id)

    def remove_applicant(self, student_id: str) -> bool:
        if student_id in self.applicant_ids:
            self.applicant_ids.remove(student_id)
            return True
        return False

    def confirm_placement(self, student_id: str) -> bool:
        """
        Consume one slot for an accepted applicant.

        Moves the opportunity to FILLED when the last slot goes. Returns
        False (and changes nothing) if the student is not an applicant or
        no slot is left.
        """
        if student_id not in self.applicant_ids or self.filled_slots >= self.total_slots:
            return False
        self.filled_slots += 1
        if self.filled_slots >= self.total_slots:
            self.status = OpportunityStatus.FILLED
        return True

    def release_placement(self) -> bool:
        """Give back one confirmed slot; a FILLED opportunity reopens as APPROVED."""
        if self.filled_slots <= 0:
            return False
        self.filled_slots -= 1
        if self.status == OpportunityStatus.FILLED and self.filled_slots < self.total_slots:
            self.status = OpportunityStatus.APPROVED
        return True


# ============================================================
# APPLICATIONS
# ============================================================

class Application(BaseModel):
    application_id: str
    student_id: str
    opportunity_id: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    submitted_at: datetime
    status_updated_at: datetime
    withdrawal_reason: Optional[str] = None
    withdrawal_requested: bool = False
    withdrawal_approved: bool = False

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_APPLICATION_STATUSES

    def set_status(self, status: ApplicationStatus, when: datetime) -> None:
        self.status = status
        self.status_updated_at = when

    def request_withdrawal(self, reason: Optional[str]) -> None:
        self.withdrawal_reason = reason
        self.withdrawal_requested = True
        self.withdrawal_approved = False

    def approve_withdrawal(self, when: datetime) -> None:
        self.withdrawal_approved = True
        self.set_status(ApplicationStatus.WITHDRAWN, when)

    def reject_withdrawal(self) -> None:
        self.withdrawal_requested = False
        self.withdrawal_reason = None

    def withdraw_by_cascade(self, when: datetime) -> None:
        """Withdrawn because the student accepted elsewhere; a pending request is dropped."""
        self.reject_withdrawal()
        self.set_status(ApplicationStatus.WITHDRAWN, when)
