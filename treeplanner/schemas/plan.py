"""Request and response schemas for the planner HTTP API."""
from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel

from treeplanner.models.base import CamelModel


class WebhookReceipt(CamelModel):
    """Acknowledgement returned to a webhook sender."""
    message: str
    plan_id: str


class HealthStatus(BaseModel):
    status: str
    timestamp: datetime


class ToolSchema(BaseModel):
    """Name, description and JSON parameter schema of one MCP tool."""
    name: str
    description: str
    parameters: Dict[str, Any]


class ToolList(BaseModel):
    tools: List[ToolSchema]
    count: int
