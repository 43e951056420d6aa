from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class StdioTransport:
    """Newline-delimited JSON over the stdin/stdout of a child process."""

    def __init__(self, command: str, args: list[str], cwd: str | None = None) -> None:
        self.command = command
        self.args = args
        self.cwd = cwd
        self._process: asyncio.subprocess.Process | None = None

    async def start(self) -> None:
        logger.info(f"Starting MCP server: {self.command} {' '.join(self.args)}")
        self._process = await asyncio.create_subprocess_exec(
            self.command,
            *self.args,
            cwd=self.cwd or str(Path.cwd()),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )

    async def stop(self) -> None:
        process = self._process
        if process is None:
            return
        self._process = None

        if process.stdin is not None:
            process.stdin.close()
            with contextlib.suppress(ConnectionError, BrokenPipeError):
                await process.stdin.wait_closed()

        if process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=5)
            except asyncio.TimeoutError:
                logger.warning("MCP server did not exit after terminate; killing it")
                process.kill()
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(process.wait(), timeout=5)

    async def send(self, message: dict[str, Any]) -> None:
        process = self._require_process()
        if process.stdin is None:
            raise RuntimeError("Transport has no stdin")
        line = json.dumps(message, ensure_ascii=False) + "\n"
        process.stdin.write(line.encode("utf-8"))
        await process.stdin.drain()

    async def recv(self) -> dict[str, Any]:
        process = self._require_process()
        if process.stdout is None:
            raise RuntimeError("Transport has no stdout")
        while True:
            line = await process.stdout.readline()
            if not line:
                raise ConnectionError("MCP transport closed")
            text = line.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                # servers occasionally print banners on stdout
                logger.debug(f"Skipping non-JSON line from MCP server: {text[:200]}")

    def _require_process(self) -> asyncio.subprocess.Process:
        if self._process is None:
            raise RuntimeError("Transport is not started")
        return self._process
