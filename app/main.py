"""
Internship Placement Engine - Main Application

FastAPI front end over the placement engine:
- Internships: create, review, publish and browse postings
- Applications: apply, approve/reject, accept with cascading withdrawal
- Withdrawals: student requests, staff decides
- Persistence: bulk load at startup, bulk save at shutdown

Run: uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import api_router
from app.core.config import Settings, get_settings
from app.core.logging_config import configure_logging
from app.db.database import SqlPersistence
from app.services.placement_engine import PlacementEngine, build_engine

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, engine: Optional[PlacementEngine] = None) -> FastAPI:
    """
    Build the FastAPI app around one PlacementEngine.

    Pass an engine to serve pre-built state (tests do this); otherwise one
    is built with SQL persistence at settings.database_url.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    if engine is None:
        engine = build_engine(settings, persistence=SqlPersistence(settings.database_url, echo=settings.debug))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.load_on_startup and engine.persistence is not None:
            engine.load()
            logger.info("Engine state loaded")
        yield
        if settings.save_on_shutdown and engine.persistence is not None:
            engine.save()
            logger.info("Engine state saved")

    app = FastAPI(
        title="Internship Placement Engine",
        description="""
        Internship opportunities, student applications and placement slots.

        ## Roles (X-User-ID header)
        - **Students**: browse eligible postings, apply (max 3), accept one placement, request withdrawal
        - **Company representatives**: create up to 5 postings, review applications
        - **Career center staff**: approve postings, decide withdrawals, approve representatives
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.engine = engine

    # CORS middleware (allow all for development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Detailed health check."""
        database = "disabled"
        if engine.persistence is not None:
            database = "connected" if engine.persistence.test_connection() else "disconnected"
        return {"status": "healthy", "database": database}

    return app


app = create_app()
