from __future__ import annotations


class ForsetiError(Exception):
    code = "ForsetiError"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MissingCredential(ForsetiError):
    code = "MissingCredential"

    def __init__(self, message: str = "No API key configured") -> None:
        super().__init__(message)


class TranslationError(ForsetiError):
    code = "TranslationError"


class TranslationTransportError(TranslationError):
    code = "TranslationTransportError"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TranslationFormatError(TranslationError):
    code = "TranslationFormatError"


class ValidationError(ForsetiError):
    code = "ValidationError"


class UnknownAction(ValidationError):
    code = "UnknownAction"

    def __init__(self, kind: object = None) -> None:
        self.kind = kind
        if kind is None:
            message = "candidate does not name an action"
        else:
            message = f"unknown action: {kind!r}"
        super().__init__(message)


class MalformedValue(ValidationError):
    code = "MalformedValue"

    def __init__(self, kind: str, field: str, reason: str) -> None:
        self.kind = kind
        self.field = field
        self.reason = reason
        super().__init__(f"{kind}: {field} {reason}")


class ExecutionError(ForsetiError):
    code = "ExecutionError"


class NoActiveTab(ExecutionError):
    code = "NoActiveTab"

    def __init__(self, message: str = "no active tab") -> None:
        super().__init__(message)


class NavigationFailed(ExecutionError):
    code = "NavigationFailed"


class ExecutionFault(ExecutionError):
    code = "ExecutionFault"
