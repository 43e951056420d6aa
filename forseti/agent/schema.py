from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union


class ActionKind(str, Enum):
    NAVIGATE = "NAVIGATE"
    CLICK = "CLICK"
    FILL_FORM = "FILL_FORM"
    GET_CONTENT = "GET_CONTENT"
    SAY = "SAY"


@dataclass(frozen=True, slots=True)
class ShapeDescriptor:
    """Expected shape of an action's ``value``.

    ``value_type`` is ``None`` when the value carries nothing (it is ignored
    rather than checked). ``fields`` lists the string fields of a record value.
    """

    kind: ActionKind
    value_type: type | None
    fields: tuple[str, ...] = ()
    allow_empty: bool = True
    absolute_url: bool = False


_SHAPES: dict[ActionKind, ShapeDescriptor] = {
    ActionKind.NAVIGATE: ShapeDescriptor(ActionKind.NAVIGATE, str, allow_empty=False, absolute_url=True),
    ActionKind.CLICK: ShapeDescriptor(ActionKind.CLICK, str, allow_empty=False),
    ActionKind.FILL_FORM: ShapeDescriptor(ActionKind.FILL_FORM, dict, fields=("selector", "text")),
    ActionKind.GET_CONTENT: ShapeDescriptor(ActionKind.GET_CONTENT, None),
    ActionKind.SAY: ShapeDescriptor(ActionKind.SAY, str),
}

# FILL_FORM fields that must not be blank
REQUIRED_NON_EMPTY_FIELDS = frozenset({"selector"})


def expected_shape(kind: ActionKind) -> ShapeDescriptor:
    return _SHAPES[kind]


@dataclass(frozen=True, slots=True)
class Navigate:
    kind: ClassVar[ActionKind] = ActionKind.NAVIGATE
    url: str

    @property
    def value(self) -> str:
        return self.url

    def to_wire(self) -> dict[str, Any]:
        return {"action": self.kind.value, "value": self.value}


@dataclass(frozen=True, slots=True)
class Click:
    kind: ClassVar[ActionKind] = ActionKind.CLICK
    selector: str

    @property
    def value(self) -> str:
        return self.selector

    def to_wire(self) -> dict[str, Any]:
        return {"action": self.kind.value, "value": self.value}


@dataclass(frozen=True, slots=True)
class FillForm:
    kind: ClassVar[ActionKind] = ActionKind.FILL_FORM
    selector: str
    text: str

    @property
    def value(self) -> dict[str, str]:
        return {"selector": self.selector, "text": self.text}

    def to_wire(self) -> dict[str, Any]:
        return {"action": self.kind.value, "value": self.value}


@dataclass(frozen=True, slots=True)
class GetContent:
    kind: ClassVar[ActionKind] = ActionKind.GET_CONTENT

    @property
    def value(self) -> None:
        return None

    def to_wire(self) -> dict[str, Any]:
        return {"action": self.kind.value, "value": None}


@dataclass(frozen=True, slots=True)
class Say:
    kind: ClassVar[ActionKind] = ActionKind.SAY
    text: str

    @property
    def value(self) -> str:
        return self.text

    def to_wire(self) -> dict[str, Any]:
        return {"action": self.kind.value, "value": self.value}


Action = Union[Navigate, Click, FillForm, GetContent, Say]
