"""JSON-RPC 2.0 framing for the MCP stdio channel.

Everything the server writes is sorted into one of four kinds before the
session acts on it: a response to one of our requests, a notification, a
request the server makes of us (``ping`` and friends), or a frame that is
none of those.
"""

from __future__ import annotations

import itertools
from enum import Enum
from typing import Any

JSONRPC_VERSION = "2.0"

METHOD_NOT_FOUND = -32601
SERVER_ERROR = -32000

_request_ids = itertools.count(1)


class MessageKind(str, Enum):
    RESPONSE = "response"
    NOTIFICATION = "notification"
    SERVER_REQUEST = "server_request"
    INVALID = "invalid"


class JsonRpcError(Exception):
    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"JSON-RPC error {code}: {message}")

    @classmethod
    def from_payload(cls, error: Any) -> "JsonRpcError":
        if not isinstance(error, dict):
            return cls(SERVER_ERROR, str(error))
        return cls(
            code=error.get("code", SERVER_ERROR),
            message=error.get("message", "Unknown JSON-RPC error"),
            data=error.get("data"),
        )


def make_request(method: str, params: dict[str, Any] | None = None) -> tuple[int, dict[str, Any]]:
    """Return a fresh request id and the frame carrying it."""
    request_id = next(_request_ids)
    message = _frame(method, params)
    message["id"] = request_id
    return request_id, message


def make_notification(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    return _frame(method, params)


def make_reply(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def make_error_reply(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": {"code": code, "message": message}}


def _frame(method: str, params: dict[str, Any] | None) -> dict[str, Any]:
    message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if params is not None:
        message["params"] = params
    return message


def classify(message: Any) -> MessageKind:
    if not isinstance(message, dict) or message.get("jsonrpc") != JSONRPC_VERSION:
        return MessageKind.INVALID
    method = message.get("method")
    if isinstance(method, str):
        return MessageKind.SERVER_REQUEST if "id" in message else MessageKind.NOTIFICATION
    if "id" in message and ("result" in message or "error" in message):
        return MessageKind.RESPONSE
    return MessageKind.INVALID


def response_id(message: dict[str, Any]) -> int | None:
    # some servers echo numeric ids back as strings
    raw = message.get("id")
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.isdigit():
        return int(raw)
    return None


def unwrap_result(message: dict[str, Any]) -> Any:
    if "error" in message and message["error"] is not None:
        raise JsonRpcError.from_payload(message["error"])
    return message.get("result")
