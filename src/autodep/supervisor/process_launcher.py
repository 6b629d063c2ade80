"""
Runtime process launcher.

Starts the supervised script under the current interpreter with inherited
stdin/stdout/stderr and exposes its exit as an awaitable.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from autodep.shared.domain.exceptions import SpawnError
from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExitStatus:
    """How a child process ended: an exit code or a terminating signal."""

    code: int | None = None
    signal: int | None = None

    @classmethod
    def from_returncode(cls, returncode: int) -> ExitStatus:
        # asyncio reports death by signal N as -N
        if returncode < 0:
            return cls(code=None, signal=-returncode)
        return cls(code=returncode, signal=None)

    @property
    def exit_code(self) -> int:
        """Exit code to propagate; signal deaths follow the shell's 128 + N convention."""
        if self.code is not None:
            return self.code
        return 128 + (self.signal or 0)

    @property
    def signal_name(self) -> str | None:
        if self.signal is None:
            return None
        try:
            return signal.Signals(self.signal).name
        except ValueError:
            return str(self.signal)


class ChildProcess:
    """Handle on a running script."""

    def __init__(self, process: asyncio.subprocess.Process, args: Sequence[str]) -> None:
        self._process = process
        self.args = list(args)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    @property
    def is_alive(self) -> bool:
        return self._process.returncode is None

    async def wait(self) -> ExitStatus:
        """Wait for the process to exit. Safe to await from several tasks."""
        returncode = await self._process.wait()
        return ExitStatus.from_returncode(returncode)

    def send_signal(self, sig: int) -> None:
        with contextlib.suppress(ProcessLookupError):
            self._process.send_signal(sig)

    def terminate(self) -> None:
        """Ask the process to exit (SIGTERM). Returns immediately."""
        logger.debug("child_terminate", pid=self.pid)
        with contextlib.suppress(ProcessLookupError):
            self._process.terminate()

    async def terminate_and_wait(self) -> ExitStatus:
        if self.is_alive:
            self.terminate()
        return await self.wait()


class ProcessLauncher:
    """Spawns ``<python> <script> <args...>`` with inherited stdio."""

    def __init__(self, python: str = sys.executable, cwd: str | Path | None = None) -> None:
        self.python = python
        self.cwd = cwd

    async def spawn(self, script: str | Path, args: Sequence[str] = ()) -> ChildProcess:
        """
        Start the script.

        Raises:
            SpawnError: The interpreter could not be started.
        """
        argv = [str(script), *args]
        try:
            process = await asyncio.create_subprocess_exec(self.python, *argv, cwd=self.cwd)
        except OSError as e:
            logger.error("child_spawn_failed", python=self.python, script=str(script), error=str(e))
            raise SpawnError(f"Cannot start {self.python} {script}: {e}", {"python": self.python}) from e

        logger.info("child_spawned", pid=process.pid, argv=argv)
        return ChildProcess(process, argv)
