from __future__ import annotations

import datetime
from typing import Any, Dict, List, Optional

SUPPORTED_MCP_VERSIONS: List[str] = ["2024-11-05", "2025-03-26"]


def latest_supported_protocol() -> str:
    return SUPPORTED_MCP_VERSIONS[-1]


def validate_protocol_version_string(version: str) -> str:
    """Ensure the protocol version is ISO formatted (YYYY-MM-DD)."""
    try:
        datetime.date.fromisoformat(version)
    except (TypeError, ValueError) as exc:
        raise ValueError("Invalid protocol version format") from exc
    return version


def negotiate_protocol_version(requested: Optional[str]) -> Optional[str]:
    """Pick the newest supported version that does not exceed the request."""
    if requested is None:
        return latest_supported_protocol()
    for version in reversed(SUPPORTED_MCP_VERSIONS):
        if version <= requested:
            return version
    return None


def jsonrpc_result(_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": _id, "result": result}


def jsonrpc_error(_id: Any, code: int, message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"jsonrpc": "2.0", "id": _id, "error": {"code": code, "message": message}}
    if data:
        body["error"]["data"] = data
    return body


def text_content(text: str) -> Dict[str, str]:
    return {"type": "text", "text": text}
