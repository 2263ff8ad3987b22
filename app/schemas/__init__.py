"""
Schemas module - Request/Response schemas for API endpoints.

Difference from models:
- Models: Internal data structures (app.models)
- Schemas: API contract (what client sends/receives)
"""

from app.schemas.schemas import (
    ApplicationResponse,
    InternshipCreate,
    InternshipResponse,
    InternshipUpdate,
    MessageResponse,
    PlacementResponse,
    RepresentativeResponse,
    StatisticsResponse,
    VisibilityUpdate,
    WithdrawalCreate,
)

__all__ = [
    "ApplicationResponse",
    "InternshipCreate",
    "InternshipResponse",
    "InternshipUpdate",
    "MessageResponse",
    "PlacementResponse",
    "RepresentativeResponse",
    "StatisticsResponse",
    "VisibilityUpdate",
    "WithdrawalCreate",
]
