from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from forseti.browser.devtools_adapter import DevToolsAdapter, TabHandle
from forseti.browser.page_scripts import CLICK_ELEMENT, build_isolated_call
from forseti.errors import ExecutionFault, NavigationFailed
from forseti.mcp_client.jsonrpc import JsonRpcError

PAGES_TEXT = "## Pages\n0: about:blank\n1: https://example.com/ [selected]"


def _text(text: str, is_error: bool = False) -> dict[str, Any]:
    result: dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result


def _script_result(payload: Any) -> dict[str, Any]:
    return _text(f"Script ran on page and returned:\n```json\n{json.dumps(payload)}\n```")


class FakeSession:
    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        self.calls.append((name, arguments))
        response = self.responses[name]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, list):
            return response.pop(0)
        return response


def _adapter(responses: dict[str, Any], ready_timeout: float = 0) -> tuple[DevToolsAdapter, FakeSession]:
    session = FakeSession(responses)
    return DevToolsAdapter(session, page_ready_timeout_seconds=ready_timeout), session


TAB = TabHandle(page_id=1, url="https://example.com/")


def test_active_tab_is_the_selected_page() -> None:
    adapter, _ = _adapter({"list_pages": _text(PAGES_TEXT)})
    assert asyncio.run(adapter.active_tab()) == TAB


def test_active_tab_is_none_without_selection() -> None:
    adapter, _ = _adapter({"list_pages": _text("## Pages\n")})
    assert asyncio.run(adapter.active_tab()) is None


def test_active_tab_is_resolved_on_every_call() -> None:
    adapter, session = _adapter(
        {"list_pages": [_text(PAGES_TEXT), _text("## Pages\n0: https://other.example/ [selected]\n1: https://example.com/")]}
    )
    first = asyncio.run(adapter.active_tab())
    second = asyncio.run(adapter.active_tab())
    assert first == TAB
    assert second == TabHandle(page_id=0, url="https://other.example/")
    assert [name for name, _ in session.calls] == ["list_pages", "list_pages"]


def test_navigate_tool_error_is_navigation_failure() -> None:
    adapter, session = _adapter({"navigate_page": _text("Protocol error: Cannot navigate to invalid URL", is_error=True)})
    with pytest.raises(NavigationFailed) as excinfo:
        asyncio.run(adapter.navigate("notascheme://x"))
    assert "invalid URL" in excinfo.value.message
    assert session.calls == [("navigate_page", {"url": "notascheme://x"})]


def test_navigate_transport_error_is_navigation_failure() -> None:
    adapter, _ = _adapter({"navigate_page": JsonRpcError(-32000, "page closed")})
    with pytest.raises(NavigationFailed):
        asyncio.run(adapter.navigate("https://example.com"))


def test_evaluate_serializes_arguments_into_one_script() -> None:
    adapter, session = _adapter({"evaluate_script": _script_result({"ok": True, "result": {"matched": True}})})
    result = asyncio.run(adapter.evaluate(TAB, CLICK_ELEMENT, "button[name='go']"))

    assert result == {"matched": True}
    name, arguments = session.calls[0]
    assert name == "evaluate_script"
    assert arguments == {"function": build_isolated_call(CLICK_ELEMENT, ["button[name='go']"])}
    assert json.dumps(["button[name='go']"]) in arguments["function"]


def test_page_exception_is_execution_fault() -> None:
    adapter, _ = _adapter(
        {"evaluate_script": _script_result({"ok": False, "error": "'###' is not a valid selector"})}
    )
    with pytest.raises(ExecutionFault) as excinfo:
        asyncio.run(adapter.evaluate(TAB, CLICK_ELEMENT, "###"))
    assert "not a valid selector" in excinfo.value.message


@pytest.mark.parametrize(
    "response",
    [
        _text("Script ran on page and returned:\nundefined"),
        _script_result({"ok": True, "result": None}),
        _text("Target closed", is_error=True),
        TimeoutError(),
    ],
)
def test_missing_result_or_tool_failure_is_execution_fault(response) -> None:  # noqa: ANN001
    adapter, _ = _adapter({"evaluate_script": response})
    with pytest.raises(ExecutionFault):
        asyncio.run(adapter.evaluate(TAB, CLICK_ELEMENT, "a"))


def test_waits_for_page_ready_before_running_script() -> None:
    adapter, session = _adapter(
        {
            "evaluate_script": [
                _script_result({"ok": True, "result": {"readyState": "loading", "hasBody": False}}),
                _script_result({"ok": True, "result": {"readyState": "complete", "hasBody": True}}),
                _script_result({"ok": True, "result": {"matched": False}}),
            ]
        },
        ready_timeout=2,
    )
    result = asyncio.run(adapter.evaluate(TAB, CLICK_ELEMENT, "a"))

    assert result == {"matched": False}
    assert len(session.calls) == 3
