from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

from tenacity import AsyncRetrying, RetryError, retry_if_result, stop_after_delay, wait_fixed

from forseti.browser.page_scripts import READY_STATE, build_isolated_call
from forseti.errors import ExecutionFault, NavigationFailed

logger = logging.getLogger(__name__)

_PAGE_LINE_RE = re.compile(r"^\s*(\d+)\s*:\s*(\S+)(.*)$")


class ToolSession(Protocol):
    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any: ...


@dataclass(frozen=True, slots=True)
class TabHandle:
    page_id: int
    url: str


class DevToolsAdapter:
    """Reaches the active browser tab through the Chrome DevTools MCP server.

    Page code only ever runs via ``evaluate_script``: arguments are serialised
    into the script and a single JSON envelope comes back.
    """

    def __init__(self, session: ToolSession, page_ready_timeout_seconds: float = 6.0) -> None:
        self.session = session
        self.page_ready_timeout_seconds = page_ready_timeout_seconds

    async def active_tab(self) -> TabHandle | None:
        try:
            raw = await self.session.call_tool("list_pages", {})
        except Exception as exc:
            raise ExecutionFault(f"could not list browser tabs: {exc}") from exc
        if _is_tool_error(raw):
            raise ExecutionFault(f"could not list browser tabs: {_tool_text(raw)}")

        for line in _tool_text(raw).splitlines():
            match = _PAGE_LINE_RE.match(line)
            if match and "[selected]" in match.group(3):
                return TabHandle(page_id=int(match.group(1)), url=match.group(2))
        return None

    async def navigate(self, url: str) -> None:
        try:
            raw = await self.session.call_tool("navigate_page", {"url": url})
        except Exception as exc:
            raise NavigationFailed(str(exc) or type(exc).__name__) from exc
        if _is_tool_error(raw):
            raise NavigationFailed(_tool_text(raw) or "navigation was rejected")

    async def evaluate(self, tab: TabHandle, function_source: str, *args: Any) -> Any:
        """Run ``function_source`` in ``tab`` and return its (JSON) result."""
        await self.wait_until_page_ready(tab)
        envelope = await self._evaluate_envelope(build_isolated_call(function_source, list(args)))
        if envelope.get("ok") is not True:
            error = envelope.get("error") or "page script failed"
            logger.warning(f"Page script raised in tab {tab.page_id}: {error}")
            raise ExecutionFault(str(error))
        result = envelope.get("result")
        if result is None:
            raise ExecutionFault("page script returned no result")
        return result

    async def wait_until_page_ready(self, tab: TabHandle, poll_seconds: float = 0.2) -> bool:
        if self.page_ready_timeout_seconds <= 0:
            return True
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_delay(self.page_ready_timeout_seconds),
                wait=wait_fixed(poll_seconds),
                retry=retry_if_result(lambda ready: not ready),
            ):
                with attempt:
                    ready = await self._page_ready()
                if not attempt.retry_state.outcome.failed:
                    attempt.retry_state.set_result(ready)
        except RetryError:
            logger.warning(f"Tab {tab.page_id} not ready after {self.page_ready_timeout_seconds}s, continuing")
            return False
        return True

    async def _page_ready(self) -> bool:
        try:
            envelope = await self._evaluate_envelope(build_isolated_call(READY_STATE, []))
        except ExecutionFault as exc:
            logger.debug(f"Readiness check failed: {exc}")
            return False
        state = envelope.get("result")
        if not isinstance(state, dict):
            return False
        return bool(state.get("hasBody")) and state.get("readyState") in {"interactive", "complete"}

    async def _evaluate_envelope(self, script: str) -> dict[str, Any]:
        try:
            raw = await self.session.call_tool("evaluate_script", {"function": script})
        except Exception as exc:
            raise ExecutionFault(str(exc) or type(exc).__name__) from exc
        if _is_tool_error(raw):
            raise ExecutionFault(_tool_text(raw) or "evaluate_script failed")

        envelope = _extract_json_object(raw)
        if envelope is None or "ok" not in envelope:
            raise ExecutionFault("page script returned no result")
        return envelope


def _is_tool_error(raw: Any) -> bool:
    return isinstance(raw, dict) and raw.get("isError") is True


def _tool_text(raw: Any) -> str:
    if not isinstance(raw, dict):
        return str(raw or "")
    content = raw.get("content", [])
    if isinstance(content, list):
        parts = [
            str(chunk.get("text", ""))
            for chunk in content
            if isinstance(chunk, dict) and chunk.get("type") == "text"
        ]
        return "\n".join(parts).strip()
    return ""


def _extract_json_object(raw: Any) -> dict[str, Any] | None:
    if isinstance(raw, dict):
        structured = raw.get("structuredContent")
        if isinstance(structured, dict) and "ok" in structured:
            return structured

    text = _tool_text(raw)
    if not text:
        return None

    candidates: list[str] = []
    fenced = re.search(r"```json\s*(.*?)\s*```", text, flags=re.DOTALL | re.IGNORECASE)
    if fenced:
        candidates.append(fenced.group(1))
    loose = re.search(r"(\{.*\})", text, flags=re.DOTALL)
    if loose:
        candidates.append(loose.group(1))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None
