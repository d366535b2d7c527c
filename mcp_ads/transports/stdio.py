"""
Line-oriented stdio transport: one JSON-RPC message per input line, one
response per output line. Each line is handled in its own task, so a slow
vendor call does not hold up requests that arrive after it.
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Optional, Set, TextIO

from starlette.concurrency import run_in_threadpool

from ..dispatcher import Dispatcher
from ..errors import INVALID_REQUEST, PARSE_ERROR
from ..protocol import jsonrpc_error
from ..service import Service

log = logging.getLogger("mcp_ads.stdio")


class StdioServer:
    def __init__(self, dispatcher: Dispatcher, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.dispatcher = dispatcher
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._write_lock = asyncio.Lock()

    async def _write(self, message: Any) -> None:
        line = json.dumps(message, separators=(",", ":"))
        async with self._write_lock:
            self.stdout.write(line + "\n")
            self.stdout.flush()

    async def handle_line(self, line: str) -> None:
        try:
            payload = json.loads(line)
        except ValueError:
            log.warning("stdio parse error: %.80r", line)
            await self._write(jsonrpc_error(None, PARSE_ERROR, "Parse error"))
            return

        if payload == []:
            await self._write(jsonrpc_error(None, INVALID_REQUEST, "Invalid Request"))
            return

        if isinstance(payload, list):
            responses = []
            for entry in payload:
                resp = await self.dispatcher.handle(entry)
                if resp is not None:
                    responses.append(resp)
            if responses:
                await self._write(responses)
            return

        response = await self.dispatcher.handle(payload)
        if response is not None:
            await self._write(response)

    async def serve(self) -> None:
        pending: Set[asyncio.Task] = set()
        while True:
            line = await run_in_threadpool(self.stdin.readline)
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            task = asyncio.ensure_future(self.handle_line(line))
            pending.add(task)
            task.add_done_callback(pending.discard)
        if pending:
            await asyncio.gather(*pending)
        log.info("stdin closed; stdio server stopping")


def run_stdio(service: Service) -> None:
    log.info("%s running on stdio", service.name)
    asyncio.run(StdioServer(service.dispatcher()).serve())
