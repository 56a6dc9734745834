"""Main FastAPI application for the Tree Planner service."""
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from treeplanner import __version__
from treeplanner.config import Settings, get_settings
from treeplanner.deps import init_tool_server
from treeplanner.mcp.server import MCPServer, get_mcp_server
from treeplanner.middleware.cors import add_cors_middleware
from treeplanner.routers import plans_router, tools_router, webhook_router
from treeplanner.services.planner_service import PlannerService
from treeplanner.utils.logger import configure_logging

logger = logging.getLogger(__name__)


def create_app(
    service: Optional[PlannerService] = None,
    settings: Optional[Settings] = None,
    mcp_server: Optional[MCPServer] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: PlannerService to serve; built from settings on first use when omitted
        settings: Runtime settings; read from the environment when omitted
        mcp_server: Tool registry; the global MCP server when omitted

    Returns:
        Configured application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Tree Planner API",
        description="Hierarchical task planning with MCP tools, progress tracking and webhooks",
        version=__version__,
    )
    app.state.settings = settings
    app.state.planner_service = service
    app.state.mcp_server = mcp_server or get_mcp_server()

    add_cors_middleware(app, settings)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.on_event("startup")
    async def startup_event():
        """Configure logging and initialize the planner and MCP server on startup."""
        configure_logging(settings.log_level, settings.log_format)

        server = init_tool_server(app)
        logger.info(f"MCP Server initialized with tools: {server.list_tools()}")
        logger.info("Application startup complete.")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    @app.get("/")
    async def root():
        """Root endpoint - API welcome message."""
        return {
            "message": "Welcome to the Tree Planner API",
            "title": "Tree Planner API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(plans_router, prefix="/api")  # /api/plans
    app.include_router(webhook_router, prefix="/api")  # /api/webhook
    app.include_router(tools_router)  # /mcp/tools

    return app


app = create_app()
