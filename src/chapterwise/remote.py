"""
Out-of-process execution of handler functions.

Used when the in-process network path is blocked: the handler runs in a fresh
Python interpreter and hands its JSON result back over stdout.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from .config import Config
from .errors import RemoteExecutionError

logger = logging.getLogger(__name__)


@dataclass
class RemoteResult:
    data: Any
    duration_ms: float


class RemoteExecutor(Protocol):
    async def call_remote(self, handler_module_path: str, args: Dict[str, Any]) -> RemoteResult:
        ...


class SubprocessRemoteExecutor:
    """Runs `module:function` handlers through `python -m chapterwise.remote_worker`."""

    def __init__(
        self,
        python_executable: Optional[str] = None,
        timeout: Optional[float] = None,
        extra_env: Optional[Dict[str, str]] = None,
    ):
        self.python_executable = python_executable or sys.executable
        self.timeout = timeout or Config.REMOTE_TIMEOUT_SECONDS
        self.extra_env = extra_env

    def _command(self) -> List[str]:
        return [self.python_executable, "-m", "chapterwise.remote_worker"]

    async def call_remote(self, handler_module_path: str, args: Dict[str, Any]) -> RemoteResult:
        """
        Run a handler in a subprocess.

        Args:
            handler_module_path: Handler as "package.module:function"
            args: Keyword arguments for the handler (JSON-serializable)

        Returns:
            RemoteResult with the handler's return value and wall time

        Raises:
            RemoteExecutionError: On timeout, non-zero exit or unreadable output
        """
        started = time.monotonic()
        request = json.dumps({"handler": handler_module_path, "args": args}).encode("utf-8")

        env = None
        if self.extra_env:
            env = {**os.environ, **self.extra_env}

        process = await asyncio.create_subprocess_exec(
            *self._command(),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(request), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise RemoteExecutionError(
                f"Remote handler {handler_module_path} timed out after {self.timeout:.0f}s"
            ) from e

        duration_ms = (time.monotonic() - started) * 1000
        if stderr:
            logger.debug("Remote handler stderr: %s", stderr.decode("utf-8", "replace").strip())

        try:
            envelope = json.loads(stdout.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RemoteExecutionError(
                f"Remote handler {handler_module_path} returned unreadable output "
                f"(exit code {process.returncode})"
            ) from e

        if process.returncode != 0 or not envelope.get("ok"):
            raise RemoteExecutionError(
                envelope.get("error") or f"Remote handler exited with code {process.returncode}"
            )

        return RemoteResult(data=envelope.get("data"), duration_ms=duration_ms)
