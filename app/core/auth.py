"""
Actor resolution - who is calling, and are they allowed to call this route.

Authentication (passwords, tokens) is handled upstream. The caller's user
ID arrives in the X-User-ID header and is resolved against the engine's
identity store. These dependencies only check the caller's role.

Provides:
- get_engine: the PlacementEngine stored on app.state
- get_current_user / get_current_student / get_current_representative /
  get_current_staff: FastAPI dependencies for role-gated routes
- raise_for_result: turns a failed OperationResult into an HTTPException
"""

from typing import Union

from fastapi import Depends, Header, HTTPException, Request, status

from app.core.errors import HTTP_STATUS_BY_ERROR, OperationResult
from app.models import CompanyRepresentative, Staff, Student
from app.services.placement_engine import PlacementEngine

AnyUser = Union[Student, CompanyRepresentative, Staff]


def get_engine(request: Request) -> PlacementEngine:
    return request.app.state.engine


def raise_for_result(result: OperationResult) -> None:
    """Map an engine failure to its HTTP status. No-op on success."""
    if result.ok:
        return
    raise HTTPException(status_code=HTTP_STATUS_BY_ERROR[result.error], detail=result.message)


async def get_current_user(
    x_user_id: str = Header(..., alias="X-User-ID"),
    engine: PlacementEngine = Depends(get_engine),
) -> AnyUser:
    """
    FastAPI dependency - resolve the calling user.

    Usage:
        @router.get("/protected")
        async def route(user: AnyUser = Depends(get_current_user)):
            return user.user_id
    """
    user = engine.queries.get_user(x_user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )
    return user


async def get_current_student(user: AnyUser = Depends(get_current_user)) -> Student:
    """Dependency - Require student role."""
    match user:
        case Student():
            return user
    raise HTTPException(status_code=403, detail="Students only")


async def get_current_representative(user: AnyUser = Depends(get_current_user)) -> CompanyRepresentative:
    """Dependency - Require company representative role. Approval is checked by the engine."""
    match user:
        case CompanyRepresentative():
            return user
    raise HTTPException(status_code=403, detail="Company representatives only")


async def get_current_staff(user: AnyUser = Depends(get_current_user)) -> Staff:
    """Dependency - Require career center staff role."""
    match user:
        case Staff():
            return user
    raise HTTPException(status_code=403, detail="Career center staff only")
