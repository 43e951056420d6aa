"""Offline keyword-matching translator.

A demo stand-in for the chat translator, useful without an API key. It only
recognises a handful of phrasings and its output goes through the same
validator as the real translator's.
"""
from __future__ import annotations

import re
from typing import Any

_URL_RE = re.compile(r"(https?://\S+)|(www\.\S+)", flags=re.IGNORECASE)

NAVIGATE_PHRASES = ("navegar para", "ir para", "vá para", "va para", "go to", "navigate to", "open")
CLICK_PHRASES = ("clicar em", "clique em", "clique no", "clique na", "aperte", "click on", "click")
FILL_PHRASES = (("preencher", "com"), ("fill", "with"))
CONTENT_PHRASES = ("o que estou vendo", "resumo da página", "resumo da pagina", "summarize", "what am i seeing")
BUTTON_WORDS = ("botão", "botao", "button")

DEFAULT_TEXT_FIELD = 'input[type="text"]'


class KeywordTranslator:
    async def translate(self, command: str, api_key: str | None = None) -> dict[str, Any]:
        return translate_keywords(command)


def translate_keywords(command: str) -> dict[str, Any]:
    lowered = command.lower().strip()

    if any(phrase in lowered for phrase in NAVIGATE_PHRASES):
        match = _URL_RE.search(command)
        if match:
            url = match.group(0).rstrip(".,;")
            if not url.lower().startswith("http"):
                url = "https://" + url
            return {"action": "NAVIGATE", "value": url}

    for phrase in CLICK_PHRASES:
        if phrase in lowered:
            target = lowered.split(phrase, 1)[1].strip()
            if target:
                selector = "button" if any(word in target for word in BUTTON_WORDS) else "a"
                return {"action": "CLICK", "value": selector}

    for verb, joiner in FILL_PHRASES:
        match = re.search(rf"\b{verb}\b(.*?)\s{joiner}\s+(.+)$", command, flags=re.IGNORECASE)
        if match:
            return {
                "action": "FILL_FORM",
                "value": {"selector": DEFAULT_TEXT_FIELD, "text": match.group(2).strip()},
            }

    if any(phrase in lowered for phrase in CONTENT_PHRASES):
        return {"action": "GET_CONTENT", "value": None}

    return {
        "action": "SAY",
        "value": (
            f'Understood: "{command}". Right now I can only navigate, click, '
            "fill forms or summarize the page."
        ),
    }
