"""
Command Executor Service.

Runs system commands asynchronously with captured output and logging.
Used for pip invocations; the supervised script itself is started by the
process launcher with inherited stdio instead.
"""

import asyncio
import os
import shlex
import time
from dataclasses import dataclass
from pathlib import Path

from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Result of a command execution."""
    command: str
    exit_code: int
    stdout: str
    stderr: str
    duration: float

    @property
    def is_success(self) -> bool:
        """Check if command succeeded."""
        return self.exit_code == 0


class CommandExecutor:
    """
    Async command executor wrapper.

    Commands run to completion; there is no timeout.
    """

    async def run_async(
        self,
        command: str | list[str],
        cwd: str | Path | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """
        Execute a command asynchronously.

        Args:
            command: Command string or list of arguments
            cwd: Working directory
            env: Environment variables (merges with os.environ)

        Returns:
            CommandResult object
        """
        start_time = time.perf_counter()

        cmd_args = shlex.split(command) if isinstance(command, str) else list(command)

        run_env = os.environ.copy()
        if env:
            run_env.update(env)

        cmd_str = command if isinstance(command, str) else " ".join(command)
        logger.debug("executing_command", command=cmd_str, cwd=str(cwd) if cwd else "cwd")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd_args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=run_env,
            )
        except OSError as e:
            logger.error("command_execution_error", command=cmd_str, error=str(e))
            return CommandResult(
                command=cmd_str,
                exit_code=-2,
                stdout="",
                stderr=f"Execution error: {e!s}",
                duration=time.perf_counter() - start_time,
            )

        stdout_data, stderr_data = await process.communicate()
        duration = time.perf_counter() - start_time
        exit_code = process.returncode
        stdout_str = stdout_data.decode("utf-8", errors="replace")
        stderr_str = stderr_data.decode("utf-8", errors="replace")

        if exit_code != 0:
            logger.warning(
                "command_failed",
                command=cmd_str,
                exit_code=exit_code,
                stderr_snippet=stderr_str[:200],
            )
        else:
            logger.debug("command_success", command=cmd_str, duration=duration)

        return CommandResult(
            command=cmd_str,
            exit_code=exit_code,
            stdout=stdout_str,
            stderr=stderr_str,
            duration=duration,
        )
