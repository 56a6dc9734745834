"""Routers package for the Tree Planner API."""

from .plans import router as plans_router
from .tools import router as tools_router
from .webhook import router as webhook_router

__all__ = ["plans_router", "tools_router", "webhook_router"]
