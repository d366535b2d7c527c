from __future__ import annotations

import datetime
import json
import logging
import os
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..dispatcher import Dispatcher
from ..errors import INVALID_REQUEST, PARSE_ERROR, UNAUTHORIZED
from ..protocol import SUPPORTED_MCP_VERSIONS, jsonrpc_error, latest_supported_protocol
from ..service import Service

log = logging.getLogger("mcp_ads.http")

MCP_PATH = "/mcp"


class RequestId(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Trust a client-provided ID if present; otherwise generate one
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        request.state.request_id = rid
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response


class RPCAudit(BaseHTTPMiddleware):
    """One log line per RPC: method, user agent, which auth headers were sent."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path == MCP_PATH and request.method == "POST":
            # BaseHTTPMiddleware caches the body, so the endpoint can read it again
            body_bytes = await request.body()

            method = "unknown"
            try:
                payload = json.loads(body_bytes.decode("utf-8") or "{}")
                method = "batch" if isinstance(payload, list) else str(payload.get("method") or "")
            except (ValueError, AttributeError):
                pass

            log.info(
                "RPC method=%s ua=%s key:x=%s bearer=%s rid=%s",
                method,
                request.headers.get("user-agent", ""),
                "X-MCP-Key" in request.headers,
                request.headers.get("authorization", "").lower().startswith("bearer "),
                getattr(request.state, "request_id", "-"),
            )
        return await call_next(request)


class MCPProtocolHeader(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        final_proto = getattr(request.state, "mcp_protocol_version", None) or latest_supported_protocol()
        response.headers["MCP-Protocol-Version"] = final_proto
        return response


def _is_authed(request: Request, shared_key: str) -> bool:
    if not shared_key:
        return True
    auth_hdr = request.headers.get("Authorization", "")
    bearer_ok = auth_hdr.lower().startswith("bearer ") and auth_hdr.split(" ", 1)[1].strip() == shared_key
    xhdr_ok = request.headers.get("X-MCP-Key", "") == shared_key
    return bearer_ok or xhdr_ok


def sse_event(payload: Any) -> str:
    return f"event: message\ndata: {json.dumps(payload)}\n\n"


def create_app(service: Service, shared_key: Optional[str] = None) -> FastAPI:
    """FastAPI app serving one MCP service over ``POST /mcp`` (single SSE event)."""
    dispatcher: Dispatcher = service.dispatcher()
    key = (os.getenv("MCP_SHARED_KEY", "") if shared_key is None else shared_key).strip()

    app = FastAPI(title=service.name, version=service.version)
    app.state.service = service
    app.state.dispatcher = dispatcher

    # Starlette runs the last-added middleware outermost
    app.add_middleware(MCPProtocolHeader)
    app.add_middleware(RPCAudit)
    app.add_middleware(RequestId)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,  # must be False when allow_origins=["*"]
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["MCP-Protocol-Version", "X-Request-ID"],
    )

    @app.get("/", include_in_schema=False)
    @app.head("/", include_in_schema=False)
    async def root_get(request: Request):
        if request.method == "HEAD":
            return PlainTextResponse("")
        return JSONResponse({
            "ok": True,
            "message": f"{service.name}: POST {MCP_PATH} for JSON-RPC; GET /health for liveness",
        })

    @app.get("/health")
    async def health():
        return JSONResponse({
            "status": "ok",
            "server": service.name,
            "version": service.version,
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        })

    @app.get("/.well-known/mcp.json")
    async def mcp_discovery():
        if key:
            auth = {"type": "shared-secret", "tokenHeader": "Authorization", "scheme": "Bearer",
                    "altHeaders": ["X-MCP-Key"]}
        else:
            auth = {"type": "none"}
        return JSONResponse({
            "mcpVersion": latest_supported_protocol(),
            "supportedVersions": SUPPORTED_MCP_VERSIONS,
            "name": service.name,
            "version": service.version,
            "description": service.description,
            "auth": auth,
            "capabilities": {"tools": {"listChanged": True}},
            "endpoints": {"rpc": MCP_PATH},
            "tools": dispatcher.list_tools()["tools"],
        })

    async def handle_one(obj: Any, request: Request, headers: Dict[str, str]) -> Optional[Dict[str, Any]]:
        rid = getattr(request.state, "request_id", "-")
        if key and isinstance(obj, dict) and obj.get("method") == "tools/call" and not _is_authed(request, key):
            tool_name = (obj.get("params") or {}).get("name") if isinstance(obj.get("params"), dict) else None
            log.warning("401 on tools/call tool=%s rid=%s", tool_name, rid)
            headers["WWW-Authenticate"] = f'Bearer realm="{service.name}"'
            if "id" not in obj:
                return None
            return jsonrpc_error(obj.get("id"), UNAUTHORIZED, "Unauthorized")

        header_version = request.headers.get("MCP-Protocol-Version")
        response = await dispatcher.handle(obj, header_version=header_version)
        if isinstance(obj, dict) and obj.get("method") == "initialize" and response is not None:
            negotiated = (response.get("result") or {}).get("protocolVersion")
            request.state.mcp_protocol_version = negotiated or latest_supported_protocol()
        return response

    @app.post(MCP_PATH)
    async def rpc(request: Request):
        """JSON-RPC endpoint; the response body is one server-sent event."""
        headers: Dict[str, str] = {"Cache-Control": "no-cache"}
        try:
            payload = await request.json()
        except ValueError:
            log.warning("RPC parse error rid=%s", getattr(request.state, "request_id", "-"))
            body: Any = jsonrpc_error(None, PARSE_ERROR, "Parse error")
        else:
            if payload == []:
                body = jsonrpc_error(None, INVALID_REQUEST, "Invalid Request")
            elif isinstance(payload, list):
                responses: List[Dict[str, Any]] = []
                for entry in payload:
                    resp = await handle_one(entry, request, headers)
                    if resp is not None:
                        responses.append(resp)
                body = responses or None
            else:
                body = await handle_one(payload, request, headers)

        if body is None:
            return Response(status_code=202, headers=headers)

        async def stream() -> AsyncIterator[str]:
            yield sse_event(body)

        return StreamingResponse(stream(), media_type="text/event-stream", headers=headers)

    return app
