from __future__ import annotations

from forseti.agent.schema import Action, ActionKind
from forseti.browser.outcome import ExecutionOutcome
from forseti.errors import (
    ForsetiError,
    MalformedValue,
    MissingCredential,
    TranslationFormatError,
    TranslationTransportError,
    UnknownAction,
)

EMPTY_COMMAND_REPLY = "Please type a command."
MISSING_CREDENTIAL_REPLY = "Error: API key not configured. Please configure the key."
INVALID_FORMAT_REPLY = "Error: The AI returned an invalid action format."
NO_ACTIVE_TAB_REPLY = "No active tab found."
EXECUTION_FAULT_REPLY = "Error executing script on the page."
UNEXPECTED_ERROR_REPLY = "Error: Something went wrong while processing the command."

SUCCESS_PREFIXES: dict[ActionKind, str] = {
    ActionKind.GET_CONTENT: "Page analysis: ",
}


def format_outcome(action: Action, outcome: ExecutionOutcome) -> str:
    if not outcome.success:
        return format_execution_failure(outcome)
    payload = outcome.payload or ""
    return SUCCESS_PREFIXES.get(action.kind, "") + payload


def format_execution_failure(outcome: ExecutionOutcome) -> str:
    if outcome.error_kind == "NoActiveTab":
        return NO_ACTIVE_TAB_REPLY
    if outcome.error_kind == "NavigationFailed":
        return f"Error navigating: {outcome.message}"
    return EXECUTION_FAULT_REPLY


def format_error(error: ForsetiError) -> str:
    """Reply for a failure raised before anything ran in the browser."""
    if isinstance(error, MissingCredential):
        return MISSING_CREDENTIAL_REPLY
    if isinstance(error, TranslationTransportError):
        if error.status_code is not None:
            return f"API call error: {error.status_code} - {error.message}"
        return f"Network error while contacting the API: {error.message}"
    if isinstance(error, TranslationFormatError):
        return INVALID_FORMAT_REPLY
    if isinstance(error, UnknownAction):
        if error.kind is None:
            return "Error: The AI response did not name an action."
        return f"Error: Unknown action '{error.kind}'."
    if isinstance(error, MalformedValue):
        if error.field == "value":
            return f"Error: Invalid {error.kind} value ({error.reason})."
        return f"Error: Invalid {error.field} in {error.kind} action ({error.reason})."
    return UNEXPECTED_ERROR_REPLY
