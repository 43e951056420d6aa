from __future__ import annotations

from dataclasses import dataclass

from forseti.errors import ExecutionError


@dataclass(slots=True)
class ExecutionOutcome:
    success: bool
    payload: str | None = None
    error_kind: str | None = None
    message: str = ""

    @classmethod
    def ok(cls, payload: str | None) -> "ExecutionOutcome":
        return cls(success=True, payload=payload)

    @classmethod
    def failed(cls, error: ExecutionError) -> "ExecutionOutcome":
        return cls(success=False, error_kind=error.code, message=error.message)


@dataclass(frozen=True, slots=True)
class PageSummary:
    title: str
    paragraphs: int
    links: int

    def render(self) -> str:
        return f'Title: "{self.title}". The page has {self.paragraphs} paragraphs and {self.links} links.'
