from __future__ import annotations

import logging
from typing import Any, Protocol

from forseti.agent.schema import Action, Click, FillForm, GetContent, Navigate, Say
from forseti.browser.devtools_adapter import TabHandle
from forseti.browser.outcome import ExecutionOutcome, PageSummary
from forseti.browser.page_scripts import CLICK_ELEMENT, FILL_FIELD, PAGE_SUMMARY
from forseti.errors import ExecutionError, ExecutionFault, NoActiveTab

logger = logging.getLogger(__name__)


class PageAdapter(Protocol):
    async def active_tab(self) -> TabHandle | None: ...

    async def navigate(self, url: str) -> None: ...

    async def evaluate(self, tab: TabHandle, function_source: str, *args: Any) -> Any: ...


class OperationExecutor:
    def __init__(self, adapter: PageAdapter) -> None:
        self.adapter = adapter

    async def execute(self, action: Action) -> ExecutionOutcome:
        """Run the operation for ``action``. Never raises; failures come back in the outcome."""
        try:
            payload = await self._run(action)
        except ExecutionError as exc:
            logger.warning(f"{action.kind.value} failed ({exc.code}): {exc.message}")
            return ExecutionOutcome.failed(exc)
        except Exception as exc:
            logger.exception(f"Unexpected fault while executing {action.kind.value}")
            return ExecutionOutcome.failed(ExecutionFault(str(exc) or type(exc).__name__))
        return ExecutionOutcome.ok(payload)

    async def _run(self, action: Action) -> str | None:
        if isinstance(action, Say):
            return action.text
        if isinstance(action, Navigate):
            await self.adapter.navigate(action.url)
            return f"Navigation started to {action.url}."
        if isinstance(action, Click):
            return await self._click(action)
        if isinstance(action, FillForm):
            return await self._fill(action)
        if isinstance(action, GetContent):
            return (await self.summarize_page()).render()
        raise ExecutionFault(f"unsupported action: {action!r}")

    async def _resolve_tab(self) -> TabHandle:
        tab = await self.adapter.active_tab()
        if tab is None:
            raise NoActiveTab()
        logger.debug(f"Active tab {tab.page_id}: {tab.url}")
        return tab

    async def _click(self, action: Click) -> str:
        tab = await self._resolve_tab()
        result = _as_dict(await self.adapter.evaluate(tab, CLICK_ELEMENT, action.selector))
        if not result.get("matched"):
            return f"No element found with selector '{action.selector}'."
        return f"Element with selector '{action.selector}' clicked successfully."

    async def _fill(self, action: FillForm) -> str:
        tab = await self._resolve_tab()
        result = _as_dict(await self.adapter.evaluate(tab, FILL_FIELD, action.value))
        if not result.get("matched"):
            return f"No field found with selector '{action.selector}'."
        return f"Field filled successfully: {action.selector} with the value: {action.text}."

    async def summarize_page(self) -> PageSummary:
        tab = await self._resolve_tab()
        result = _as_dict(await self.adapter.evaluate(tab, PAGE_SUMMARY))
        try:
            return PageSummary(
                title=str(result.get("title", "")),
                paragraphs=int(result.get("paragraphs", 0)),
                links=int(result.get("links", 0)),
            )
        except (TypeError, ValueError) as exc:
            raise ExecutionFault(f"unexpected page summary: {result!r}") from exc


def _as_dict(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        raise ExecutionFault(f"unexpected page script result: {result!r}")
    return result
