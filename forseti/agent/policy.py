from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

from forseti.agent.schema import (
    REQUIRED_NON_EMPTY_FIELDS,
    Action,
    ActionKind,
    Click,
    FillForm,
    GetContent,
    Navigate,
    Say,
    ShapeDescriptor,
    expected_shape,
)
from forseti.errors import MalformedValue, UnknownAction

logger = logging.getLogger(__name__)

WEB_SCHEMES = frozenset({"http", "https"})


def validate(candidate: Any) -> Action:
    """Turn an untrusted translator candidate into an Action.

    Raises UnknownAction when the candidate names no known kind and
    MalformedValue when the value does not fit the kind's shape.
    """
    kind = _normalize_kind(candidate)
    shape = expected_shape(kind)
    value = candidate.get("value")

    if kind == ActionKind.NAVIGATE:
        return Navigate(url=_check_url(shape, value))
    if kind == ActionKind.CLICK:
        return Click(selector=_check_text(shape, value, "value"))
    if kind == ActionKind.FILL_FORM:
        record = _check_record(shape, value)
        return FillForm(selector=record["selector"], text=record["text"])
    if kind == ActionKind.GET_CONTENT:
        if value is not None:
            logger.debug(f"Ignoring value on GET_CONTENT action: {value!r}")
        return GetContent()
    return Say(text=_check_text(shape, value, "value"))


def _normalize_kind(candidate: Any) -> ActionKind:
    if not isinstance(candidate, Mapping):
        raise UnknownAction(None)

    token = candidate.get("action")
    if token is None:
        raise UnknownAction(None)
    if not isinstance(token, str):
        raise UnknownAction(token)

    normalized = token.strip().upper().replace("-", "_").replace(" ", "_")
    try:
        return ActionKind(normalized)
    except ValueError:
        raise UnknownAction(token) from None


def _check_text(shape: ShapeDescriptor, value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise MalformedValue(shape.kind.value, field, "must be a string")
    if not shape.allow_empty and not value.strip():
        raise MalformedValue(shape.kind.value, field, "must not be empty")
    return value.strip() if not shape.allow_empty else value


def _check_url(shape: ShapeDescriptor, value: Any) -> str:
    url = _check_text(shape, value, "value")
    if shape.absolute_url and not _looks_like_absolute_url(url):
        raise MalformedValue(shape.kind.value, "value", "must be an absolute URL")
    return url


def _looks_like_absolute_url(url: str) -> bool:
    if any(ch.isspace() for ch in url):
        return False
    parts = urlsplit(url)
    if not parts.scheme:
        return False
    if parts.scheme in WEB_SCHEMES:
        return bool(parts.netloc)
    # about:blank, file:///tmp/x.html and data: URLs carry only a path
    return bool(parts.netloc or parts.path)


def _check_record(shape: ShapeDescriptor, value: Any) -> dict[str, str]:
    if isinstance(value, str):
        # some models encode the record as a JSON string
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise MalformedValue(shape.kind.value, "value", "must be an object") from None

    if not isinstance(value, Mapping):
        raise MalformedValue(shape.kind.value, "value", "must be an object")

    record: dict[str, str] = {}
    for name in shape.fields:
        field = f"value.{name}"
        item = value.get(name)
        if item is None:
            raise MalformedValue(shape.kind.value, field, "is missing")
        if not isinstance(item, str):
            raise MalformedValue(shape.kind.value, field, "must be a string")
        if name in REQUIRED_NON_EMPTY_FIELDS and not item.strip():
            raise MalformedValue(shape.kind.value, field, "must not be empty")
        record[name] = item.strip() if name in REQUIRED_NON_EMPTY_FIELDS else item
    return record
