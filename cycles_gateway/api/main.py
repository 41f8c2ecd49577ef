"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from cycles_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from cycles_gateway.api.v1 import cycles, overrides
from cycles_gateway.infrastructure.database.models import Base
from cycles_gateway.infrastructure.database.session import engine
from cycles_gateway.infrastructure.observability.logging import setup_logging
from cycles_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Override store table
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Cycles Gateway",
        description="Billing-cycle computation for liabilities, budgets, goals and recurring transactions",
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
    app.include_router(cycles.router, prefix="/v1", tags=["cycles"])
    app.include_router(overrides.router, prefix="/v1", tags=["overrides"])

    return app


app = create_app()
