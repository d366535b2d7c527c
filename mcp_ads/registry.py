"""Static catalog of the tools one service exposes."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Type

from pydantic import BaseModel, ConfigDict

from .errors import DuplicateToolError

log = logging.getLogger("mcp_ads.registry")


class ToolParams(BaseModel):
    """Base for per-tool argument models. Arguments use camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


def schema_for(params: Type[BaseModel]) -> Dict[str, Any]:
    """JSON schema advertised in ``tools/list`` for a params model."""
    schema = params.model_json_schema(by_alias=True)
    schema.pop("title", None)
    schema.setdefault("properties", {})
    if params.model_config.get("extra") != "forbid":
        schema["additionalProperties"] = True
    return schema


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    params: Type[BaseModel]
    handler: Callable[[Any], Any]
    input_schema: Dict[str, Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_schema", schema_for(self.params))

    def describe(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, ToolDefinition] = {}

    def register(self, definition: ToolDefinition) -> ToolDefinition:
        if definition.name in self._tools:
            raise DuplicateToolError(f"Tool already registered: {definition.name}")
        self._tools[definition.name] = definition
        log.debug("registered tool %s", definition.name)
        return definition

    def tool(self, name: str, description: str, params: Type[BaseModel]):
        """Decorator form of ``register``."""
        def decorator(fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
            self.register(ToolDefinition(name=name, description=description, params=params, handler=fn))
            return fn
        return decorator

    def list(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def resolve(self, name: Optional[str]) -> Optional[ToolDefinition]:
        if not name:
            return None
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._tools)
