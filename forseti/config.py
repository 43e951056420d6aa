from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Protocol

API_KEY_ENV = "FORSETI_API_KEY"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"
DEFAULT_MODEL = "gemini-2.5-flash"
TRANSLATOR_CHOICES = ("llm", "keyword")


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class CredentialSource(Protocol):
    def get_api_key(self) -> str | None: ...


class EnvCredentialSource:
    """Reads the API key from the environment on every lookup."""

    def __init__(self, variable: str = API_KEY_ENV) -> None:
        self.variable = variable

    def get_api_key(self) -> str | None:
        value = os.getenv(self.variable, "").strip()
        return value or None


class StaticCredentialSource:
    def __init__(self, api_key: str | None) -> None:
        self.api_key = (api_key or "").strip() or None

    def get_api_key(self) -> str | None:
        return self.api_key


@dataclass(slots=True)
class ForsetiConfig:
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    request_timeout_seconds: float = 30.0
    translator: str = "llm"
    mcp_server_command: str = "npx"
    mcp_server_args: str = "-y chrome-devtools-mcp@latest"
    chrome_path: str = ""
    step_timeout_seconds: float = 20.0
    page_ready_timeout_seconds: float = 6.0
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "ForsetiConfig":
        translator = os.getenv("FORSETI_TRANSLATOR", "llm").strip().lower() or "llm"
        if translator not in TRANSLATOR_CHOICES:
            raise ValueError(
                f"FORSETI_TRANSLATOR must be one of {', '.join(TRANSLATOR_CHOICES)}, got {translator!r}"
            )
        return cls(
            base_url=os.getenv("FORSETI_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            model=os.getenv("FORSETI_MODEL", DEFAULT_MODEL),
            request_timeout_seconds=_env_float("FORSETI_REQUEST_TIMEOUT_SECONDS", 30.0),
            translator=translator,
            mcp_server_command=os.getenv("MCP_SERVER_COMMAND", "npx"),
            mcp_server_args=os.getenv("MCP_SERVER_ARGS", "-y chrome-devtools-mcp@latest"),
            chrome_path=os.getenv("CHROME_PATH", "").strip().strip('"'),
            step_timeout_seconds=_env_float("FORSETI_STEP_TIMEOUT_SECONDS", 20.0),
            page_ready_timeout_seconds=_env_float("FORSETI_PAGE_READY_TIMEOUT_SECONDS", 6.0),
            verbose=_env_flag("VERBOSE"),
        )

    def credential_source(self) -> CredentialSource | None:
        # the keyword translator runs offline and needs no key
        if self.translator == "keyword":
            return None
        return EnvCredentialSource()
