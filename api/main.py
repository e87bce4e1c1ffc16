"""
Main FastAPI application for the Behavior Insights engine.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import tracking, insights, leads, realtime
from .services import get_services, initialize_services
from config.settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Behavior Insights starting up...")
    initialize_services()
    logger.info("Behavior Insights ready")
    yield
    logger.info("Behavior Insights shutting down...")
    await get_services().shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # DEBUG overrides LOG_LEVEL
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.api_title,
        description="Behavioral session tracking, predictions and predictive lead scoring.",
        version=settings.api_version,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Behavior tracking ---
    app.include_router(tracking.router, prefix="/api/v1", tags=["Tracking"])
    app.include_router(insights.router, prefix="/api/v1", tags=["Insights"])

    # --- Lead scoring ---
    app.include_router(leads.router, prefix="/api/v1", tags=["Leads"])

    # --- Real-time ---
    app.include_router(realtime.router, prefix="/api/v1", tags=["Realtime"])

    # Root endpoint
    @app.get("/")
    async def root():
        return {
            "service": "Behavior Insights",
            "version": settings.api_version,
            "status": "operational",
            "docs": "/docs",
        }

    # Health check
    @app.get("/health")
    async def health():
        services = get_services()
        return {
            "status": "healthy" if services.is_ready else "degraded",
            "services": services.health(),
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
