"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session as DBSession
from starlette.responses import Response

from society_portal.api.dependencies import PortalState
from society_portal.api.errors import register_exception_handlers
from society_portal.api.middleware import RequestIDMiddleware, MetricsMiddleware
from society_portal.api.v1 import billing, community, complaints, onboarding, session
from society_portal.config import settings
from society_portal.infrastructure.clients.portal import PortalClient
from society_portal.infrastructure.database.session import SessionLocal, init_db
from society_portal.infrastructure.observability.logging import setup_logging
from society_portal.services.session_store import SessionStore

# Setup structured logging
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


def create_app(
    client: Optional[PortalClient] = None,
    db_factory: Optional[Callable[[], DBSession]] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        client: Remote API client; defaults to one for settings.api_base_url
        db_factory: Session factory for the local session table; defaults to
            the configured database, whose tables are created on startup
    """
    client = client or PortalClient()
    store = SessionStore(client, db_factory or SessionLocal)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if db_factory is None:
            init_db()
        restored = await store.restore()
        logger.info("Startup session restore finished", extra={"authenticated": restored})
        yield

    app = FastAPI(
        title="Society Portal",
        description="Session, PG onboarding and invoice checkout host for the society API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.portal = PortalState(client, store)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(session.router, prefix="/v1", tags=["session"])
    app.include_router(onboarding.router, prefix="/v1", tags=["onboarding"])
    app.include_router(billing.router, prefix="/v1", tags=["billing"])
    app.include_router(complaints.router, prefix="/v1", tags=["complaints"])
    app.include_router(community.router, prefix="/v1", tags=["community"])

    return app


app = create_app()
