"""
MCP Base Tool Interface

Provides base functionality for all planner MCP tools:
- Parameter name normalization (camelCase from agents, snake_case in Python)
- Error handling (structured error payload, or raise when configured)
- Logging
- Standard response envelopes
"""

from typing import Any, Dict, Optional
from abc import ABC, abstractmethod
import logging

from pydantic import BaseModel
from pydantic.alias_generators import to_snake

from treeplanner.errors import PlannerError
from treeplanner.services.planner_service import PlannerService

logger = logging.getLogger(__name__)


class BaseMCPTool(ABC):
    """
    Base class for all planner MCP tools

    Subclasses implement execute(); callers go through run(), which logs the
    invocation and applies the error policy. With raise_errors the
    PlannerError propagates; otherwise it becomes an error envelope.
    """

    name = "tool"

    def __init__(self, service: PlannerService, raise_errors: bool = False):
        self.service = service
        self.raise_errors = raise_errors

    def log_tool_invocation(self, tool_name: str, params: Dict[str, Any]) -> None:
        """
        Log MCP tool invocation for audit trail

        Args:
            tool_name: Name of the tool being invoked
            params: Tool parameters
        """
        logger.info(f"MCP Tool Invocation: {tool_name} | Params: {params}")

    async def run(self, **kwargs) -> Dict[str, Any]:
        params = {to_snake(key): value for key, value in kwargs.items()}
        self.log_tool_invocation(self.name, params)
        try:
            return await self.execute(**params)
        except PlannerError as e:
            if self.raise_errors:
                raise
            logger.warning(f"MCP tool {self.name} returned error {e.code}: {e.message}")
            return create_error_response(e)

    @abstractmethod
    async def execute(self, **kwargs) -> Dict[str, Any]:
        """
        Execute the tool logic

        Must be implemented by subclasses

        Args:
            **kwargs: Tool-specific parameters in snake_case

        Returns:
            Tool execution result
        """
        pass


def to_data(value: Any) -> Any:
    """Convert models (or lists of them) into camelCase JSON-ready data"""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [to_data(item) for item in value]
    return value


def create_error_response(error: PlannerError) -> Dict[str, Any]:
    """
    Create a standardized error response

    Args:
        error: The PlannerError to convert

    Returns:
        Standardized error response dictionary
    """
    return {
        "success": False,
        "error": {
            "code": error.code,
            "message": error.message,
            "details": error.details
        }
    }


def create_refusal_response(
    code: str, message: str, details: Optional[Dict[str, Any]] = None, data: Any = None
) -> Dict[str, Any]:
    """A declined request that is not an error: same shape as an error, plus optional data"""
    response: Dict[str, Any] = {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {}
        }
    }
    if data is not None:
        response["data"] = data
    return response


def create_success_response(data: Any, message: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a standardized success response

    Args:
        data: The response data
        message: Optional success message

    Returns:
        Standardized success response dictionary
    """
    response = {
        "success": True,
        "data": data
    }

    if message:
        response["message"] = message

    return response

