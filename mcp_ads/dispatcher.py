"""
JSON-RPC dispatch shared by every service.

``Dispatcher.handle`` takes one decoded JSON-RPC object from any transport and
returns the response object (or ``None`` for notifications). ``tools/call`` goes
through ``Dispatcher.dispatch``, which never raises: unknown tools, invalid
arguments and handler failures all come back as an error ``ToolResult``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from .errors import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    TOOL_ERROR,
    VendorError,
    describe_error,
)
from .protocol import (
    SUPPORTED_MCP_VERSIONS,
    jsonrpc_error,
    jsonrpc_result,
    negotiate_protocol_version,
    text_content,
    validate_protocol_version_string,
)
from .registry import ToolRegistry

log = logging.getLogger("mcp_ads.dispatcher")

RequestId = Union[str, int, None]


@dataclass(frozen=True)
class ToolRequest:
    id: RequestId
    tool_name: Optional[str]
    arguments: Any = None

    @classmethod
    def from_params(cls, _id: RequestId, params: Any) -> "ToolRequest":
        params = params if isinstance(params, Mapping) else {}
        arguments = params.get("arguments")
        return cls(id=_id, tool_name=params.get("name"), arguments={} if arguments is None else arguments)


@dataclass(frozen=True)
class ToolResult:
    content: Optional[Tuple[Dict[str, str], ...]] = None
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, *texts: str) -> "ToolResult":
        return cls(content=tuple(text_content(t) for t in texts))

    @classmethod
    def err(cls, code: int, message: str, data: Optional[Dict[str, Any]] = None) -> "ToolResult":
        error: Dict[str, Any] = {"code": code, "message": message}
        if data:
            error["data"] = data
        return cls(error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_response(self, _id: RequestId) -> Dict[str, Any]:
        if self.error is not None:
            return {"jsonrpc": "2.0", "id": _id, "error": dict(self.error)}
        return jsonrpc_result(_id, {"content": list(self.content or ())})


def encode_payload(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, indent=2, default=str)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


class Dispatcher:
    def __init__(self, registry: ToolRegistry, server_name: str, server_version: str):
        self.registry = registry
        self.server_name = server_name
        self.server_version = server_version

    def list_tools(self) -> Dict[str, Any]:
        return {"tools": [tool.describe() for tool in self.registry.list()]}

    async def dispatch(self, request: ToolRequest) -> ToolResult:
        name = request.tool_name
        if not name or not isinstance(name, str):
            return ToolResult.err(TOOL_ERROR, "Invalid params: missing tool name")

        tool = self.registry.resolve(name)
        if tool is None:
            log.warning("tools/call unknown tool name=%s id=%s", name, request.id)
            return ToolResult.err(TOOL_ERROR, f"Unknown tool: {name}")

        try:
            params = tool.params.model_validate(request.arguments)
        except ValidationError as ve:
            msg = _format_validation_error(ve)
            log.warning("tools/call invalid_params name=%s id=%s error=%s", name, request.id, msg)
            return ToolResult.err(TOOL_ERROR, f"Invalid params: {msg}")

        log.info("tools/call start name=%s id=%s", name, request.id)
        try:
            payload = await run_in_threadpool(tool.handler, params)
            text = encode_payload(payload)
        except Exception as e:
            log.exception("tools/call failed name=%s id=%s", name, request.id)
            data = e.data if isinstance(e, VendorError) else None
            return ToolResult.err(TOOL_ERROR, describe_error(e), data)

        log.info("tools/call ok name=%s id=%s", name, request.id)
        return ToolResult.ok(text)

    def _initialize(self, _id: RequestId, params: Mapping[str, Any], header_version: Optional[str]) -> Dict[str, Any]:
        raw_proto = params.get("protocolVersion") or header_version or None
        try:
            requested = validate_protocol_version_string(raw_proto) if raw_proto else None
        except ValueError:
            return jsonrpc_error(_id, INVALID_PARAMS, "Invalid protocolVersion format",
                                 {"supportedVersions": SUPPORTED_MCP_VERSIONS})

        negotiated = negotiate_protocol_version(requested)
        if negotiated is None:
            return jsonrpc_error(_id, INVALID_PARAMS, "Unsupported protocolVersion",
                                 {"supportedVersions": SUPPORTED_MCP_VERSIONS})

        log.info("protocol negotiated requested=%s -> %s", raw_proto, negotiated)
        return jsonrpc_result(_id, {
            "protocolVersion": negotiated,
            "capabilities": {"tools": {"listChanged": True}},
            "serverInfo": {"name": self.server_name, "version": self.server_version},
        })

    async def handle(self, payload: Any, header_version: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Handle one JSON-RPC object; ``None`` means no response (notification)."""
        if not isinstance(payload, dict):
            return jsonrpc_error(None, INVALID_REQUEST, "Invalid Request")

        is_notification = "id" not in payload
        _id = payload.get("id")
        method = payload.get("method")
        params = payload.get("params") or {}
        if not isinstance(method, str) or not method:
            return None if is_notification else jsonrpc_error(_id, INVALID_REQUEST, "Invalid Request")
        if not isinstance(params, Mapping):
            return None if is_notification else jsonrpc_error(_id, INVALID_PARAMS, "Invalid params")

        if method == "initialize":
            response = self._initialize(_id, params, header_version)
        elif method == "ping":
            response = jsonrpc_result(_id, {})
        elif method == "tools/list":
            response = jsonrpc_result(_id, self.list_tools())
        elif method == "tools/call":
            result = await self.dispatch(ToolRequest.from_params(_id, params))
            response = result.to_response(_id)
        elif method.startswith("notifications/") and is_notification:
            response = None
        else:
            response = jsonrpc_error(_id, METHOD_NOT_FOUND, "Method not found")

        if is_notification:
            return None
        return response
