"""MCP tool servers for BigQuery, Google Ads and Meta Ads."""
from .dispatcher import Dispatcher, ToolRequest, ToolResult
from .registry import ToolDefinition, ToolParams, ToolRegistry
from .service import Service

__version__ = "0.1.0"

__all__ = [
    "Dispatcher",
    "ToolRequest",
    "ToolResult",
    "ToolDefinition",
    "ToolParams",
    "ToolRegistry",
    "Service",
]
