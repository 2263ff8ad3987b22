"""
Internship Routes

POST /internships - Create internship posting (representative only)
GET /internships - List internships visible to the caller, with filters
GET /internships/{opportunity_id} - Get internship details
PUT /internships/{opportunity_id} - Update a pending posting (owner only)
DELETE /internships/{opportunity_id} - Delete posting (owner only)
PUT /internships/{opportunity_id}/visibility - Show/hide an approved posting (owner only)
POST /internships/{opportunity_id}/apply - Apply to internship (student only)
GET /internships/{opportunity_id}/applications - Applications for a posting (owner or staff)
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth import (
    AnyUser,
    get_current_representative,
    get_current_student,
    get_current_user,
    get_engine,
    raise_for_result,
)
from app.models import (
    CompanyRepresentative,
    InternshipLevel,
    Major,
    OpportunityStatus,
    Staff,
    Student,
)
from app.schemas.schemas import (
    ApplicationResponse,
    InternshipCreate,
    InternshipResponse,
    InternshipUpdate,
    MessageResponse,
    VisibilityUpdate,
)
from app.services.placement_engine import PlacementEngine
from app.services.query_service import OpportunityFilter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internships", tags=["Internships"])


def get_filters(
    status: Optional[OpportunityStatus] = Query(None),
    major: Optional[Major] = Query(None),
    level: Optional[InternshipLevel] = Query(None),
    closing_from: Optional[date] = Query(None, description="Closing on or after"),
    closing_to: Optional[date] = Query(None, description="Closing on or before"),
    min_available_slots: Optional[int] = Query(None, ge=0),
    show_only_applied: bool = Query(False, description="Students only: postings you applied to"),
) -> OpportunityFilter:
    return OpportunityFilter(
        status=status, major=major, level=level,
        closing_from=closing_from, closing_to=closing_to,
        min_available_slots=min_available_slots, show_only_applied=show_only_applied,
    )


@router.post("", response_model=InternshipResponse, status_code=201)
async def create_internship(
    data: InternshipCreate,
    rep: CompanyRepresentative = Depends(get_current_representative),
    engine: PlacementEngine = Depends(get_engine),
):
    """Create a new posting. It stays PENDING and hidden until staff approve it."""
    result = engine.allocation.create_opportunity(rep.user_id, **data.model_dump())
    raise_for_result(result)
    return InternshipResponse.from_entity(result.value)


@router.get("", response_model=List[InternshipResponse])
async def list_internships(
    filters: OpportunityFilter = Depends(get_filters),
    user: AnyUser = Depends(get_current_user),
    engine: PlacementEngine = Depends(get_engine),
):
    """
    Students see approved, eligible postings (plus hidden ones they applied to),
    representatives see their own postings, staff see everything.
    """
    match user:
        case Student():
            opportunities = engine.queries.opportunities_for_student(user.user_id, filters)
        case CompanyRepresentative():
            opportunities = engine.queries.opportunities_by_representative(user.user_id, filters)
        case Staff():
            opportunities = engine.queries.all_opportunities(filters)
    if filters.has_active_filters():
        logger.debug("Listing for %s filtered by %s", user.user_id, filters.model_dump(exclude_defaults=True))
    return [InternshipResponse.from_entity(o) for o in opportunities]


@router.get("/{opportunity_id}", response_model=InternshipResponse)
async def get_internship(
    opportunity_id: str,
    user: AnyUser = Depends(get_current_user),
    engine: PlacementEngine = Depends(get_engine),
):
    """Get details of a posting the caller is allowed to see."""
    opportunity = engine.queries.opportunity_for_user(user.user_id, opportunity_id)
    if opportunity is None:
        raise HTTPException(status_code=404, detail="Internship not found")
    return InternshipResponse.from_entity(opportunity)


@router.put("/{opportunity_id}", response_model=InternshipResponse)
async def update_internship(
    opportunity_id: str,
    update: InternshipUpdate,
    rep: CompanyRepresentative = Depends(get_current_representative),
    engine: PlacementEngine = Depends(get_engine),
):
    """Update a posting. Only the owner, and only while it is PENDING."""
    result = engine.allocation.update_opportunity(opportunity_id, rep.user_id, **update.model_dump())
    raise_for_result(result)
    return InternshipResponse.from_entity(result.value)


@router.delete("/{opportunity_id}", response_model=MessageResponse)
async def delete_internship(
    opportunity_id: str,
    rep: CompanyRepresentative = Depends(get_current_representative),
    engine: PlacementEngine = Depends(get_engine),
):
    """Delete a posting that is still PENDING or has no applicants."""
    result = engine.allocation.delete_opportunity(opportunity_id, rep.user_id)
    raise_for_result(result)
    return MessageResponse(message="Internship deleted successfully")


@router.put("/{opportunity_id}/visibility", response_model=InternshipResponse)
async def set_internship_visibility(
    opportunity_id: str,
    update: VisibilityUpdate,
    rep: CompanyRepresentative = Depends(get_current_representative),
    engine: PlacementEngine = Depends(get_engine),
):
    result = engine.allocation.set_visibility(opportunity_id, rep.user_id, update.visible)
    raise_for_result(result)
    return InternshipResponse.from_entity(result.value)


@router.post("/{opportunity_id}/apply", response_model=ApplicationResponse, status_code=201)
async def apply_to_internship(
    opportunity_id: str,
    student: Student = Depends(get_current_student),
    engine: PlacementEngine = Depends(get_engine),
):
    """Apply to a posting. Students only, at most 3 applications, no duplicates."""
    result = engine.allocation.submit_application(student.user_id, opportunity_id)
    raise_for_result(result)
    return ApplicationResponse.from_entity(result.value)


@router.get("/{opportunity_id}/applications", response_model=List[ApplicationResponse])
async def list_internship_applications(
    opportunity_id: str,
    user: AnyUser = Depends(get_current_user),
    engine: PlacementEngine = Depends(get_engine),
):
    """Applications for one posting, oldest first. Owner or staff only."""
    opportunity = engine.queries.get_opportunity(opportunity_id)
    if opportunity is None:
        raise HTTPException(status_code=404, detail="Internship not found")

    match user:
        case Staff():
            pass
        case CompanyRepresentative() if user.user_id == opportunity.representative_id:
            pass
        case _:
            raise HTTPException(status_code=403, detail="Access denied")

    return [ApplicationResponse.from_entity(a) for a in engine.queries.applications_by_opportunity(opportunity_id)]
