"""CORS configuration for browser clients of the planner API."""
import logging

from fastapi.middleware.cors import CORSMiddleware

from treeplanner.config import Settings

logger = logging.getLogger(__name__)


def add_cors_middleware(app, settings: Settings):
    """Add CORS middleware to the FastAPI application."""
    # Origins come from FRONTEND_URL and TREEPLANNER_CORS_ORIGINS; localhost only outside production
    origins = settings.allowed_origins
    logger.info(f"Using {settings.environment} CORS with origins: {origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
