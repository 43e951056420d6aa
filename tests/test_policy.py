from __future__ import annotations

import pytest

from forseti.agent.policy import validate
from forseti.agent.schema import (
    ActionKind,
    Click,
    FillForm,
    GetContent,
    Navigate,
    Say,
    expected_shape,
)
from forseti.errors import MalformedValue, UnknownAction


def test_expected_shape_is_stable_for_every_kind() -> None:
    for kind in ActionKind:
        assert expected_shape(kind) == expected_shape(kind)
        assert expected_shape(kind).kind is kind
    assert expected_shape(ActionKind.FILL_FORM).fields == ("selector", "text")
    assert expected_shape(ActionKind.GET_CONTENT).value_type is None


def test_accepts_one_candidate_of_each_kind() -> None:
    assert validate({"action": "NAVIGATE", "value": "https://example.com"}) == Navigate("https://example.com")
    assert validate({"action": "CLICK", "value": "button#submit"}) == Click("button#submit")
    assert validate(
        {"action": "FILL_FORM", "value": {"selector": "input#username", "text": "my_user"}}
    ) == FillForm(selector="input#username", text="my_user")
    assert validate({"action": "GET_CONTENT", "value": None}) == GetContent()
    assert validate({"action": "SAY", "value": "Hello, how can I help?"}) == Say("Hello, how can I help?")


def test_kind_is_normalized() -> None:
    assert validate({"action": " navigate ", "value": "https://example.com"}).kind is ActionKind.NAVIGATE
    assert validate({"action": "fill-form", "value": {"selector": "#q", "text": ""}}).kind is ActionKind.FILL_FORM


@pytest.mark.parametrize(
    "candidate",
    [
        None,
        "NAVIGATE",
        ["NAVIGATE", "https://example.com"],
        {},
        {"value": "https://example.com"},
        {"action": 3, "value": "x"},
        {"action": "SCROLL", "value": "down"},
        {"action": "", "value": None},
    ],
)
def test_unknown_or_missing_kind_is_rejected(candidate) -> None:  # noqa: ANN001
    with pytest.raises(UnknownAction):
        validate(candidate)


def test_empty_navigate_url_is_malformed() -> None:
    with pytest.raises(MalformedValue) as excinfo:
        validate({"action": "NAVIGATE", "value": ""})
    assert excinfo.value.field == "value"
    assert excinfo.value.kind == "NAVIGATE"


@pytest.mark.parametrize(
    "url", ["example.com", "/relative/path", "https://", "http:/no-host", "http://exa mple.com", 42, None]
)
def test_navigate_requires_absolute_url(url) -> None:  # noqa: ANN001
    with pytest.raises(MalformedValue):
        validate({"action": "NAVIGATE", "value": url})


def test_navigate_accepts_about_blank_and_strips_whitespace() -> None:
    assert validate({"action": "NAVIGATE", "value": "about:blank"}) == Navigate("about:blank")
    assert validate({"action": "NAVIGATE", "value": "  https://example.com/a?b=1 "}) == Navigate(
        "https://example.com/a?b=1"
    )


@pytest.mark.parametrize("url", ["file:///tmp/index.html", "data:text/html,<h1>hi</h1>", "chrome://settings"])
def test_navigate_accepts_absolute_urls_without_a_web_host(url) -> None:  # noqa: ANN001
    assert validate({"action": "NAVIGATE", "value": url}) == Navigate(url)


def test_get_content_tolerates_a_value() -> None:
    assert validate({"action": "GET_CONTENT", "value": "ignored"}) == GetContent()
    assert validate({"action": "GET_CONTENT"}) == GetContent()


def test_click_requires_non_empty_selector() -> None:
    with pytest.raises(MalformedValue):
        validate({"action": "CLICK", "value": "   "})
    with pytest.raises(MalformedValue):
        validate({"action": "CLICK", "value": {"selector": "a"}})


def test_fill_form_names_the_offending_field() -> None:
    with pytest.raises(MalformedValue) as missing_text:
        validate({"action": "FILL_FORM", "value": {"selector": "#name"}})
    assert missing_text.value.field == "value.text"

    with pytest.raises(MalformedValue) as bad_selector:
        validate({"action": "FILL_FORM", "value": {"selector": 7, "text": "x"}})
    assert bad_selector.value.field == "value.selector"

    with pytest.raises(MalformedValue) as not_a_record:
        validate({"action": "FILL_FORM", "value": "input#name"})
    assert not_a_record.value.field == "value"


def test_fill_form_decodes_json_encoded_record() -> None:
    action = validate({"action": "FILL_FORM", "value": '{"selector": "#q", "text": "forseti"}'})
    assert action == FillForm(selector="#q", text="forseti")


def test_say_requires_text() -> None:
    with pytest.raises(MalformedValue):
        validate({"action": "SAY", "value": None})


def test_extra_keys_are_ignored() -> None:
    action = validate({"action": "NAVIGATE", "value": "https://example.com", "reply": "Navigating."})
    assert action == Navigate("https://example.com")


def test_validation_is_deterministic() -> None:
    candidate = {"action": "FILL_FORM", "value": {"selector": " #q ", "text": " spaced "}}
    first = validate(candidate)
    second = validate(candidate)
    assert first == second
    assert first.text == " spaced "
    assert first.selector == "#q"


def test_validated_action_round_trips_to_wire() -> None:
    for candidate in (
        {"action": "NAVIGATE", "value": "https://example.com"},
        {"action": "CLICK", "value": "a.login"},
        {"action": "FILL_FORM", "value": {"selector": "#q", "text": "x"}},
        {"action": "GET_CONTENT", "value": None},
        {"action": "SAY", "value": "hi"},
    ):
        assert validate(candidate).to_wire() == candidate
