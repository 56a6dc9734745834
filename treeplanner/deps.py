"""
Wiring for the planner: store, repository, notifier and service construction,
plus the FastAPI dependency providers that hand them to the routers.
"""
from datetime import datetime
from typing import Callable, Optional
import logging

from fastapi import FastAPI, HTTPException, Request, status

from treeplanner.config import Settings
from treeplanner.db.base import PlanStore
from treeplanner.errors import ConflictError, NotFoundError, PlannerError, ValidationError
from treeplanner.mcp.server import MCPServer
from treeplanner.mcp.tools import register_planner_tools
from treeplanner.models.base import utcnow
from treeplanner.notifications import PlanNotifier, build_notifier
from treeplanner.services.planner_service import PlannerService
from treeplanner.services.repository import PlanRepository

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def build_store(settings: Settings) -> PlanStore:
    if settings.storage == "sql":
        from treeplanner.db.sql_store import SqlPlanStore
        logger.info("Using relational plan store")
        return SqlPlanStore(settings.database_url)

    from treeplanner.db.json_store import JsonDocumentStore
    logger.info(f"Using JSON document store at {settings.database_path}")
    return JsonDocumentStore(settings.database_path, lock_timeout=settings.lock_timeout)


def build_service(
    settings: Settings,
    store: Optional[PlanStore] = None,
    notifier: Optional[PlanNotifier] = None,
    clock: Callable[[], datetime] = utcnow,
) -> PlannerService:
    """Assemble a PlannerService from settings; any piece can be supplied instead."""
    if store is None:
        store = build_store(settings)
    if notifier is None:
        notifier = build_notifier(
            settings.webhook_url,
            timeout=settings.webhook_timeout,
            estimate_mode=settings.plan_estimate_mode,
        )
    repository = PlanRepository(store, notifier)
    return PlannerService(repository, clock=clock, estimate_mode=settings.plan_estimate_mode)


def init_planner_service(app: FastAPI) -> PlannerService:
    """Build the application's PlannerService from its settings unless one was supplied."""
    state = app.state
    if state.planner_service is None:
        state.planner_service = build_service(state.settings)
    return state.planner_service


def init_tool_server(app: FastAPI) -> MCPServer:
    """Register the planner tools on the application's MCP server unless already done."""
    server: MCPServer = app.state.mcp_server
    if not server.list_tools():
        register_planner_tools(server, init_planner_service(app), app.state.settings.raise_tool_errors)
    return server


def get_planner_service(request: Request) -> PlannerService:
    """Dependency for getting the PlannerService."""
    return init_planner_service(request.app)


def get_tool_server(request: Request) -> MCPServer:
    """Dependency for getting the MCP server."""
    return init_tool_server(request.app)


def to_http_exception(error: PlannerError) -> HTTPException:
    """Map a planner error onto an HTTP status; unknown kinds are server errors."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.to_dict())
    logger.error(f"Planner error {error.code}: {error.message}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.to_dict())
