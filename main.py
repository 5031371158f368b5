"""
Workplan - Main Application Entry Point

Resource-allocation scheduler: places task hours onto user calendars.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workplan.core.config import get_settings
from workplan.core.logger import setup_logger

logger = setup_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Workplan in {settings.ENVIRONMENT} mode...")

    if settings.is_local:
        from workplan.infrastructure.local.database import init_db

        await init_db()

    yield

    # Shutdown
    logger.info("Shutting down Workplan...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Workplan",
        description="Allocates task work-hours onto user calendars",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from workplan.api import (
        allocations,
        calendar,
        child_allocations,
        notifications,
        projects,
        recurring_blocks,
        tasks,
    )

    app.include_router(calendar.router, prefix="/api/calendar", tags=["calendar"])
    app.include_router(projects.router, prefix="/api/projects", tags=["projects"])
    app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])
    app.include_router(allocations.router, prefix="/api/allocations", tags=["allocations"])
    app.include_router(child_allocations.router, prefix="/api/child-allocations", tags=["child_allocations"])
    app.include_router(recurring_blocks.router, prefix="/api/recurring-blocks", tags=["recurring_blocks"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": "0.1.0"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
