from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Protocol

from .jsonrpc import (
    METHOD_NOT_FOUND,
    MessageKind,
    classify,
    make_error_reply,
    make_notification,
    make_reply,
    make_request,
    response_id,
    unwrap_result,
)

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2025-06-18"
CLIENT_INFO = {"name": "forseti", "version": "0.1.0"}


class Transport(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def send(self, message: dict[str, Any]) -> None: ...

    async def recv(self) -> dict[str, Any]: ...


class McpSession:
    def __init__(self, transport: Transport, timeout_seconds: float = 20.0) -> None:
        self.transport = transport
        self.timeout_seconds = timeout_seconds
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._reader_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        await self.transport.start()
        self._reader_task = asyncio.create_task(self._reader_loop())

    async def stop(self) -> None:
        if self._reader_task is not None:
            self._reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(self._reader_task, timeout=2)
            self._reader_task = None
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self.transport.stop(), timeout=8)

    async def initialize(self) -> Any:
        result = await self.request(
            "initialize",
            {
                "protocolVersion": PROTOCOL_VERSION,
                "clientInfo": CLIENT_INFO,
                "capabilities": {},
            },
        )
        await self.transport.send(make_notification("notifications/initialized"))
        return result

    async def list_tools(self) -> Any:
        return await self.request("tools/list", {})

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        logger.debug(f"MCP tool call: {name}")
        return await self.request("tools/call", {"name": name, "arguments": arguments})

    async def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        request_id, message = make_request(method, params)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self.transport.send(message)
            return await asyncio.wait_for(future, timeout=self.timeout_seconds)
        finally:
            self._pending.pop(request_id, None)

    async def _reader_loop(self) -> None:
        try:
            while True:
                message = await self.transport.recv()
                kind = classify(message)
                if kind is MessageKind.RESPONSE:
                    self._resolve(message)
                elif kind is MessageKind.NOTIFICATION:
                    logger.debug(f"MCP notification: {message['method']}")
                elif kind is MessageKind.SERVER_REQUEST:
                    await self._answer_server_request(message)
                else:
                    logger.warning(f"Ignoring malformed MCP frame: {str(message)[:200]}")
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(f"MCP reader stopped: {exc!r}")
            for future in self._pending.values():
                if not future.done():
                    future.set_exception(ConnectionError(f"MCP session lost: {exc}"))
            self._pending.clear()

    def _resolve(self, message: dict[str, Any]) -> None:
        request_id = response_id(message)
        future = self._pending.pop(request_id, None) if request_id is not None else None
        if future is None or future.done():
            logger.debug(f"Dropping MCP response for unknown request id {message.get('id')!r}")
            return
        try:
            future.set_result(unwrap_result(message))
        except Exception as exc:
            future.set_exception(exc)

    async def _answer_server_request(self, message: dict[str, Any]) -> None:
        method = message["method"]
        if method == "ping":
            await self.transport.send(make_reply(message["id"], {}))
            return
        logger.debug(f"Declining MCP server request: {method}")
        await self.transport.send(make_error_reply(message["id"], METHOD_NOT_FOUND, f"Method {method} not found"))
