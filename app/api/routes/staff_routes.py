"""
Staff Routes (career center)

GET /staff/internships/pending - Postings waiting for review
POST /staff/internships/{opportunity_id}/approve - Approve posting (makes it visible)
POST /staff/internships/{opportunity_id}/reject - Reject posting
GET /staff/withdrawals - Withdrawal requests waiting for a decision
POST /staff/withdrawals/{application_id}/approve - Approve withdrawal
POST /staff/withdrawals/{application_id}/reject - Reject withdrawal
GET /staff/representatives/pending - Representative accounts waiting for approval
POST /staff/representatives/{representative_id}/approve - Approve representative
POST /staff/representatives/{representative_id}/reject - Reject (remove) representative
GET /staff/statistics - Application and posting counts
"""

from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import get_current_staff, get_engine, raise_for_result
from app.models import Staff
from app.schemas.schemas import (
    ApplicationResponse,
    InternshipResponse,
    MessageResponse,
    RepresentativeResponse,
    StatisticsResponse,
)
from app.services.placement_engine import PlacementEngine

router = APIRouter(prefix="/staff", tags=["Staff"])


# ============================================================
# POSTINGS
# ============================================================

@router.get("/internships/pending", response_model=List[InternshipResponse])
async def list_pending_internships(
    staff: Staff = Depends(get_current_staff),
    engine: PlacementEngine = Depends(get_engine),
):
    return [InternshipResponse.from_entity(o) for o in engine.queries.pending_opportunities()]


@router.post("/internships/{opportunity_id}/approve", response_model=InternshipResponse)
async def approve_internship(
    opportunity_id: str,
    staff: Staff = Depends(get_current_staff),
    engine: PlacementEngine = Depends(get_engine),
):
    result = engine.allocation.approve_opportunity(opportunity_id)
    raise_for_result(result)
    return InternshipResponse.from_entity(result.value)


@router.post("/internships/{opportunity_id}/reject", response_model=InternshipResponse)
async def reject_internship(
    opportunity_id: str,
    staff: Staff = Depends(get_current_staff),
    engine: PlacementEngine = Depends(get_engine),
):
    result = engine.allocation.reject_opportunity(opportunity_id)
    raise_for_result(result)
    return InternshipResponse.from_entity(result.value)


# ============================================================
# WITHDRAWALS
# ============================================================

@router.get("/withdrawals", response_model=List[ApplicationResponse])
async def list_withdrawal_requests(
    staff: Staff = Depends(get_current_staff),
    engine: PlacementEngine = Depends(get_engine),
):
    """Pending withdrawal requests, oldest first."""
    return [ApplicationResponse.from_entity(a) for a in engine.queries.withdrawal_requests()]


@router.post("/withdrawals/{application_id}/approve", response_model=ApplicationResponse)
async def approve_withdrawal(
    application_id: str,
    staff: Staff = Depends(get_current_staff),
    engine: PlacementEngine = Depends(get_engine),
):
    result = engine.allocation.approve_withdrawal(application_id)
    raise_for_result(result)
    return ApplicationResponse.from_entity(result.value)


@router.post("/withdrawals/{application_id}/reject", response_model=ApplicationResponse)
async def reject_withdrawal(
    application_id: str,
    staff: Staff = Depends(get_current_staff),
    engine: PlacementEngine = Depends(get_engine),
):
    result = engine.allocation.reject_withdrawal(application_id)
    raise_for_result(result)
    return ApplicationResponse.from_entity(result.value)


# ============================================================
# REPRESENTATIVE ACCOUNTS
# ============================================================

@router.get("/representatives/pending", response_model=List[RepresentativeResponse])
async def list_pending_representatives(
    staff: Staff = Depends(get_current_staff),
    engine: PlacementEngine = Depends(get_engine),
):
    return [
        RepresentativeResponse(**rep.model_dump(exclude={"role"}))
        for rep in engine.queries.pending_representatives()
    ]


@router.post("/representatives/{representative_id}/approve", response_model=RepresentativeResponse)
async def approve_representative(
    representative_id: str,
    staff: Staff = Depends(get_current_staff),
    engine: PlacementEngine = Depends(get_engine),
):
    result = engine.allocation.approve_representative(representative_id)
    raise_for_result(result)
    return RepresentativeResponse(**result.value.model_dump(exclude={"role"}))


@router.post("/representatives/{representative_id}/reject", response_model=MessageResponse)
async def reject_representative(
    representative_id: str,
    staff: Staff = Depends(get_current_staff),
    engine: PlacementEngine = Depends(get_engine),
):
    result = engine.allocation.reject_representative(representative_id)
    raise_for_result(result)
    return MessageResponse(message="Representative rejected")


# ============================================================
# ANALYTICS
# ============================================================

@router.get("/statistics", response_model=StatisticsResponse)
async def get_statistics(
    staff: Staff = Depends(get_current_staff),
    engine: PlacementEngine = Depends(get_engine),
):
    return StatisticsResponse(
        applications=engine.queries.application_statistics(),
        opportunities=engine.queries.opportunity_statistics(),
    )
