"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from spendsense.api.middleware import RequestIDMiddleware, MetricsMiddleware
from spendsense.api.v1 import alerts, consent, profile, recommendations, review
from spendsense.infrastructure.database.session import init_db
from spendsense.infrastructure.observability.logging import setup_logging
from spendsense.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="SpendSense",
        description="Behavioral profiling, persona-gated education and AML heuristic review",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

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
    app.include_router(consent.router, prefix="/v1", tags=["consent"])
    app.include_router(profile.router, prefix="/v1", tags=["profiles"])
    app.include_router(recommendations.router, prefix="/v1", tags=["recommendations"])
    app.include_router(alerts.router, prefix="/v1", tags=["alerts"])
    app.include_router(review.router, prefix="/v1", tags=["review"])

    return app


app = create_app()
