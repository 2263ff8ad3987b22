"""
API module - FastAPI routers and endpoint definitions.

Routes are a thin presentation layer: they resolve the caller, call the
placement engine and translate engine errors into HTTP status codes.

Usage:
    from app.api import api_router
    app.include_router(api_router, prefix="/api")
"""

from app.api.routes import api_router

__all__ = ["api_router"]
