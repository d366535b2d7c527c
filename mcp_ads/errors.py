from __future__ import annotations

from typing import Any, Dict, List, Optional

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
TOOL_ERROR = -32000
UNAUTHORIZED = -32001


class ConfigError(RuntimeError):
    """Missing or invalid process configuration. Fatal at start-up."""


class DuplicateToolError(ConfigError):
    pass


class VendorError(RuntimeError):
    """A vendor API call failed. ``data`` is attached to the JSON-RPC error."""

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}


def _sub_error_message(err: Any) -> str:
    if isinstance(err, dict):
        return str(err.get("message") or "Unknown error")
    return str(getattr(err, "message", None) or err or "Unknown error")


def _sub_errors(exc: BaseException) -> List[Any]:
    # google-ads: exc.failure.errors; google-api-core: exc.errors
    failure = getattr(exc, "failure", None)
    errors = getattr(failure, "errors", None) if failure is not None else getattr(exc, "errors", None)
    if callable(errors) or not errors:
        return []
    try:
        return list(errors)
    except TypeError:
        return []


def describe_error(exc: BaseException) -> str:
    """Best human-readable message for a failure raised by a tool handler."""
    if isinstance(exc, VendorError):
        return exc.message

    messages = [_sub_error_message(e) for e in _sub_errors(exc)]
    if messages:
        return "; ".join(messages)

    # facebook-business FacebookRequestError
    api_error_message = getattr(exc, "api_error_message", None)
    if callable(api_error_message):
        msg = api_error_message()
        if msg:
            return str(msg)

    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or type(exc).__name__
