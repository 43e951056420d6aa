from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os
import shlex
import shutil
from pathlib import Path

from dotenv import find_dotenv, load_dotenv, set_key
from rich import print as console_print
from rich.logging import RichHandler
from rich.prompt import Prompt

from forseti.agent.dispatcher import DispatchCoordinator
from forseti.browser.devtools_adapter import DevToolsAdapter
from forseti.browser.executor import OperationExecutor
from forseti.config import API_KEY_ENV, TRANSLATOR_CHOICES, ForsetiConfig
from forseti.llm.keyword_translator import KeywordTranslator
from forseti.llm.translator import ChatTranslator, Translator
from forseti.mcp_client.session import McpSession
from forseti.mcp_client.transport import StdioTransport

EXIT_WORDS = {"exit", "quit", "sair"}


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Control the active browser tab with natural-language commands")
    parser.add_argument("--command", help="Dispatch a single command and exit")
    parser.add_argument(
        "--translator",
        choices=TRANSLATOR_CHOICES,
        help="Override FORSETI_TRANSLATOR (llm or the offline keyword demo)",
    )
    parser.add_argument("--set-api-key", metavar="KEY", help=f"Store {API_KEY_ENV} in the .env file and exit")
    return parser.parse_args(argv)


def _server_args(args_str: str, chrome_path: str = "") -> list[str]:
    args = shlex.split(args_str, posix=os.name != "nt")

    targets_running_browser = any(
        token in {"-u", "--browserUrl", "-w", "--wsEndpoint"}
        or token.startswith(("--browserUrl=", "--wsEndpoint="))
        for token in args
    )
    has_executable_arg = any(
        token in {"-e", "--executablePath"} or token.startswith("--executablePath=") for token in args
    )
    if not targets_running_browser and not has_executable_arg:
        executable = _resolve_browser_executable(chrome_path)
        if executable:
            args.extend(["--executablePath", executable])
    return args


def _resolve_browser_executable(configured: str = "") -> str | None:
    if configured and os.path.exists(configured):
        return configured

    program_files = os.getenv("ProgramFiles", "C:\\Program Files")
    local_app_data = os.getenv("LOCALAPPDATA", "")
    candidates = [
        "/usr/bin/google-chrome",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        os.path.join(program_files, "Google", "Chrome", "Application", "chrome.exe"),
        os.path.join(local_app_data, "Google", "Chrome", "Application", "chrome.exe"),
    ]
    for candidate in candidates:
        if candidate and os.path.exists(candidate):
            return candidate
    return None


def _resolve_command(command: str) -> str:
    candidate = command.strip().strip('"')
    resolved = shutil.which(candidate)
    if resolved:
        return resolved
    if os.name == "nt":
        resolved_cmd = shutil.which(f"{candidate}.cmd")
        if resolved_cmd:
            return resolved_cmd
    raise RuntimeError(
        f"MCP server command not found: {command}. Ensure Node.js/npx is installed and available in PATH."
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=False)],
    )


def _build_translator(config: ForsetiConfig) -> Translator:
    if config.translator == "keyword":
        return KeywordTranslator()
    return ChatTranslator(
        model=config.model,
        base_url=config.base_url,
        timeout_seconds=config.request_timeout_seconds,
    )


def store_api_key(api_key: str, env_path: str | None = None) -> Path:
    key = api_key.strip()
    if not key:
        raise ValueError("Please provide a non-empty API key.")
    path = Path(env_path or find_dotenv(usecwd=True) or ".env")
    path.touch(exist_ok=True)
    set_key(str(path), API_KEY_ENV, key)
    return path


async def _interactive(coordinator: DispatchCoordinator) -> None:
    console_print("[bold]Forseti[/bold] is listening. Type 'exit' to quit.")
    while True:
        try:
            command = await asyncio.to_thread(Prompt.ask, "[cyan]>[/cyan]")
        except (EOFError, KeyboardInterrupt):
            break
        if command.strip().lower() in EXIT_WORDS:
            break
        if not command.strip():
            continue
        reply = await coordinator.dispatch(command)
        console_print(f"[green]Forseti:[/green] {reply}")


async def _run(config: ForsetiConfig, command: str | None) -> None:
    transport = StdioTransport(
        _resolve_command(config.mcp_server_command),
        _server_args(config.mcp_server_args, config.chrome_path),
    )
    session = McpSession(transport, timeout_seconds=config.step_timeout_seconds)

    await session.start()
    try:
        await session.initialize()
        adapter = DevToolsAdapter(session, page_ready_timeout_seconds=config.page_ready_timeout_seconds)
        coordinator = DispatchCoordinator(
            translator=_build_translator(config),
            executor=OperationExecutor(adapter),
            credentials=config.credential_source(),
        )
        if command is not None:
            console_print(await coordinator.dispatch(command))
        else:
            await _interactive(coordinator)
    finally:
        with contextlib.suppress(Exception):
            await session.stop()


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    load_dotenv()

    if args.set_api_key is not None:
        try:
            path = store_api_key(args.set_api_key)
        except ValueError as exc:
            raise SystemExit(str(exc)) from None
        console_print(f"API key saved to {path}")
        return

    try:
        config = ForsetiConfig.from_env()
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from None
    if args.translator:
        config.translator = args.translator
    _configure_logging(config.verbose)

    asyncio.run(_run(config, args.command))


if __name__ == "__main__":
    main()
