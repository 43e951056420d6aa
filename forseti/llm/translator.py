from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol

import httpx

from forseti.errors import TranslationFormatError, TranslationTransportError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are Forseti, an AI agent for browser control. Your only job is to translate natural-language commands into a structured action in JSON format.

The JSON MUST have the following structure:
{
  "action": "ACTION",
  "value": "VALUE"
}

The possible ACTIONS and their expected VALUES are:
1. NAVIGATE: Navigate to a URL. VALUE: The full URL (e.g. "https://www.google.com").
2. CLICK: Click an element. VALUE: A CSS selector that identifies the element (e.g. "button#submit" or "a[href='/login']").
3. FILL_FORM: Fill a form field. VALUE: A JSON object with the CSS selector of the field and the text to fill in (e.g. {"selector": "input#username", "text": "my_user"}).
4. GET_CONTENT: Get the page content. VALUE: null.
5. SAY: Reply to the user with text. Use this action if the command is not a browser-control action. VALUE: The reply text (e.g. "Hello, how can I help?").

If the command is ambiguous, use the SAY action and ask for more details.
Your response MUST be ONLY the JSON object. Do not include explanatory text, Markdown or anything else.
""".strip()


class Translator(Protocol):
    async def translate(self, command: str, api_key: str | None) -> Any: ...


class ChatTranslator:
    """Translates commands through an OpenAI-compatible chat-completions API."""

    def __init__(
        self,
        model: str,
        base_url: str,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def translate(self, command: str, api_key: str | None) -> Any:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": command},
            ],
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(f"{self.base_url}/chat/completions", headers=headers, json=payload)
                logger.info(f"Translation response status: {response.status_code}")
        except httpx.HTTPError as exc:
            logger.error(f"Network error calling translation API: {exc!r}")
            raise TranslationTransportError(str(exc) or type(exc).__name__) from exc

        if response.is_error:
            message = self._error_message(response)
            logger.error(f"Translation API error {response.status_code}: {message}")
            raise TranslationTransportError(message, status_code=response.status_code)

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise TranslationFormatError("unexpected chat-completions response body") from exc
        if not isinstance(content, str):
            raise TranslationFormatError("chat-completions response has no text content")
        return parse_json_content(content)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text.strip()[:300] or response.reason_phrase
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(body, list) and body and isinstance(body[0], dict):
            # Gemini wraps errors in a one-element list
            nested = body[0].get("error")
            if isinstance(nested, dict) and nested.get("message"):
                return str(nested["message"])
        return response.reason_phrase


def parse_json_content(content: str | bytes) -> Any:
    """Decode translator output, tolerating a JSON object wrapped in prose or fences."""
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    text = content.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", text, flags=re.DOTALL)
        if not match:
            logger.warning(f"Translator did not return JSON content: {text[:200]!r}")
            raise TranslationFormatError("translator did not return JSON content") from None
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.warning(f"Could not decode JSON from translator output: {text[:200]!r}")
            raise TranslationFormatError("translator returned malformed JSON") from None
