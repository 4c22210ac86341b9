"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from credit_committee.api.middleware import MetricsMiddleware, RequestIDMiddleware
from credit_committee.api.v1 import committee, dossiers, history, smartscore
from credit_committee.config import settings
from credit_committee.infrastructure.database.models import Base
from credit_committee.infrastructure.database.session import engine
from credit_committee.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Credit Committee Engine",
        description="Loan dossier intake, SmartScore and committee decision service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    Base.metadata.create_all(bind=engine)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(dossiers.router, prefix="/v1", tags=["dossiers"])
    app.include_router(smartscore.router, prefix="/v1", tags=["smartscore"])
    app.include_router(committee.router, prefix="/v1", tags=["committee"])
    app.include_router(history.router, prefix="/v1", tags=["history"])

    return app


app = create_app()
