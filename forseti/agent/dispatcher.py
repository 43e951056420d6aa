from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Protocol

from forseti.agent import replies
from forseti.agent.policy import validate
from forseti.agent.schema import Action
from forseti.browser.outcome import ExecutionOutcome
from forseti.config import CredentialSource
from forseti.errors import (
    ForsetiError,
    MissingCredential,
    TranslationError,
    TranslationTransportError,
)
from forseti.llm.translator import Translator, parse_json_content

logger = logging.getLogger(__name__)


class DispatchState(str, Enum):
    IDLE = "idle"
    TRANSLATING = "translating"
    VALIDATING = "validating"
    EXECUTING = "executing"


class Executor(Protocol):
    async def execute(self, action: Action) -> ExecutionOutcome: ...


class DispatchCoordinator:
    """Turns one command into one reply: translate, validate, execute, format.

    Commands are handled one at a time; a second ``dispatch`` waits until the
    first reply has been produced.
    """

    def __init__(
        self,
        translator: Translator,
        executor: Executor,
        credentials: CredentialSource | None = None,
    ) -> None:
        self.translator = translator
        self.executor = executor
        self.credentials = credentials
        self.state = DispatchState.IDLE
        self._lock = asyncio.Lock()

    async def dispatch(self, command: str) -> str:
        async with self._lock:
            try:
                return await self._dispatch(command)
            except ForsetiError as exc:
                logger.warning(f"Command rejected ({exc.code}): {exc.message}")
                return replies.format_error(exc)
            except Exception:
                logger.exception("Unexpected error while dispatching command")
                return replies.UNEXPECTED_ERROR_REPLY
            finally:
                self.state = DispatchState.IDLE

    async def _dispatch(self, command: str) -> str:
        command = (command or "").strip()
        if not command:
            return replies.EMPTY_COMMAND_REPLY

        api_key = None
        if self.credentials is not None:
            api_key = self.credentials.get_api_key()
            if not api_key:
                raise MissingCredential()

        self.state = DispatchState.TRANSLATING
        candidate = await self._translate(command, api_key)

        self.state = DispatchState.VALIDATING
        action = validate(candidate)
        logger.info(f"Validated action: {action.to_wire()}")

        self.state = DispatchState.EXECUTING
        outcome = await self.executor.execute(action)
        return replies.format_outcome(action, outcome)

    async def _translate(self, command: str, api_key: str | None) -> Any:
        try:
            candidate = await self.translator.translate(command, api_key)
        except TranslationError:
            raise
        except Exception as exc:
            raise TranslationTransportError(str(exc) or type(exc).__name__) from exc

        if isinstance(candidate, (str, bytes)):
            candidate = parse_json_content(candidate)
        return candidate
