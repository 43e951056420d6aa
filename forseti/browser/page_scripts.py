"""JavaScript functions evaluated inside the page.

Each function receives JSON-serialisable arguments and returns one
JSON-serialisable value. They never throw for a missing element: a miss is
reported as ``{matched: false}``.
"""
from __future__ import annotations

import json
from typing import Any

CLICK_ELEMENT = """
(selector) => {
  const element = document.querySelector(selector);
  if (!element) return {matched: false};
  element.click();
  return {matched: true, tag: String(element.tagName || '').toLowerCase()};
}
""".strip()

FILL_FIELD = """
(data) => {
  const element = document.querySelector(data.selector);
  if (!element) return {matched: false};
  element.value = data.text;
  element.dispatchEvent(new Event('input', {bubbles: true}));
  element.dispatchEvent(new Event('change', {bubbles: true}));
  return {matched: true, tag: String(element.tagName || '').toLowerCase()};
}
""".strip()

PAGE_SUMMARY = """
() => ({
  title: String(document.title || ''),
  paragraphs: document.querySelectorAll('p').length,
  links: document.querySelectorAll('a').length,
})
""".strip()

READY_STATE = """
() => ({
  readyState: String(document.readyState || 'loading'),
  hasBody: Boolean(document.body),
})
""".strip()


def build_isolated_call(function_source: str, args: list[Any]) -> str:
    """Wrap a page function so its result, or its failure, comes back as one envelope."""
    encoded_args = json.dumps(args, ensure_ascii=False)
    return (
        "async () => {"
        f"const fn = {function_source};"
        f"const args = {encoded_args};"
        "try {"
        "const result = await fn(...args);"
        "return {ok: true, result: result === undefined ? null : result};"
        "} catch (error) {"
        "return {ok: false, error: String((error && error.message) || error)};"
        "}"
        "}"
    )
