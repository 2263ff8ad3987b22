"""
Student Routes

GET /students/profile - Get own profile (applied postings, accepted placement)
GET /students/applications - Get own applications, newest first
POST /students/applications/{application_id}/accept - Accept a successful application
POST /students/applications/{application_id}/withdrawal - Request withdrawal (staff decides)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.auth import get_current_student, get_engine, raise_for_result
from app.models import Major, Student
from app.schemas.schemas import ApplicationResponse, PlacementResponse, WithdrawalCreate
from app.services.placement_engine import PlacementEngine

router = APIRouter(prefix="/students", tags=["Students"])


class StudentProfileResponse(BaseModel):
    user_id: str
    name: str
    year_of_study: int
    major: Major
    major_name: str
    applied_opportunities: List[str]
    accepted_opportunity: Optional[str] = None


@router.get("/profile", response_model=StudentProfileResponse)
async def get_profile(student: Student = Depends(get_current_student)):
    """Get current student's profile."""
    return StudentProfileResponse(**student.model_dump(exclude={"role"}), major_name=student.major.display_name)


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_my_applications(
    student: Student = Depends(get_current_student),
    engine: PlacementEngine = Depends(get_engine),
):
    """Get all applications submitted by this student."""
    return [ApplicationResponse.from_entity(a) for a in engine.queries.applications_by_student(student.user_id)]


@router.post("/applications/{application_id}/accept", response_model=PlacementResponse)
async def accept_placement(
    application_id: str,
    student: Student = Depends(get_current_student),
    engine: PlacementEngine = Depends(get_engine),
):
    """Accept a SUCCESSFUL application. All other active applications are withdrawn."""
    result = engine.allocation.accept_placement(application_id, student.user_id)
    raise_for_result(result)
    return PlacementResponse(
        application=ApplicationResponse.from_entity(result.value.application),
        withdrawn_application_ids=result.value.withdrawn_application_ids,
    )


@router.post("/applications/{application_id}/withdrawal", response_model=ApplicationResponse)
async def request_withdrawal(
    application_id: str,
    data: WithdrawalCreate,
    student: Student = Depends(get_current_student),
    engine: PlacementEngine = Depends(get_engine),
):
    """Ask career center staff to withdraw an application."""
    result = engine.allocation.request_withdrawal(application_id, student.user_id, data.reason)
    raise_for_result(result)
    return ApplicationResponse.from_entity(result.value)
