from __future__ import annotations

from dataclasses import dataclass

from .dispatcher import Dispatcher
from .registry import ToolRegistry


@dataclass(frozen=True)
class Service:
    """One MCP server: its identity plus the tools it exposes."""

    name: str
    version: str
    description: str
    registry: ToolRegistry

    def dispatcher(self) -> Dispatcher:
        return Dispatcher(self.registry, server_name=self.name, server_version=self.version)
