"""
Company Routes

GET /companies/profile - Get own representative profile
GET /companies/applications - Applications received across own postings
POST /companies/applications/{application_id}/approve - Mark application successful
POST /companies/applications/{application_id}/reject - Mark application unsuccessful
"""

from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import get_current_representative, get_engine, raise_for_result
from app.models import CompanyRepresentative
from app.schemas.schemas import ApplicationResponse, RepresentativeResponse
from app.services.placement_engine import PlacementEngine

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.get("/profile", response_model=RepresentativeResponse)
async def get_profile(rep: CompanyRepresentative = Depends(get_current_representative)):
    """Get current representative's profile."""
    return RepresentativeResponse(**rep.model_dump(exclude={"role"}))


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_received_applications(
    rep: CompanyRepresentative = Depends(get_current_representative),
    engine: PlacementEngine = Depends(get_engine),
):
    """Get all applications to this representative's postings, newest first."""
    return [
        ApplicationResponse.from_entity(a)
        for a in engine.queries.applications_by_representative(rep.user_id)
    ]


@router.post("/applications/{application_id}/approve", response_model=ApplicationResponse)
async def approve_application(
    application_id: str,
    rep: CompanyRepresentative = Depends(get_current_representative),
    engine: PlacementEngine = Depends(get_engine),
):
    """Approve a PENDING application. Needs a free slot; the slot is only taken when the student accepts."""
    result = engine.allocation.approve_application(application_id, rep.user_id)
    raise_for_result(result)
    return ApplicationResponse.from_entity(result.value)


@router.post("/applications/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    application_id: str,
    rep: CompanyRepresentative = Depends(get_current_representative),
    engine: PlacementEngine = Depends(get_engine),
):
    result = engine.allocation.reject_application(application_id, rep.user_id)
    raise_for_result(result)
    return ApplicationResponse.from_entity(result.value)
