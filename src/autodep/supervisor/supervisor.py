"""
Process supervisor.

Owns the single child process and the watch set, and drives the cycle
state machine:

    IDLE -> RESOLVING -> RUNNING -> TERMINATING -> RESOLVING -> ...
               |
               +-> IDLE (cycle failed; previous watches stay armed)

Without watch mode there is exactly one cycle and the child's exit ends
the supervisor with the child's exit code.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape

from autodep.pipeline.application.cycle_pipeline import CyclePipeline
from autodep.pipeline.domain.cycle_context import CycleOutcome
from autodep.pipeline.domain.enums import FailurePolicy, SupervisorState
from autodep.shared.domain.exceptions import AutodepError
from autodep.shared.infrastructure.logging import get_logger
from autodep.supervisor.file_watcher import FileWatcher
from autodep.supervisor.process_launcher import ChildProcess, ExitStatus, ProcessLauncher

logger = get_logger(__name__)

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Supervisor:
    """
    Runs a script, restarting it on changes to its local modules in watch mode.

    The ``_busy`` guard covers a whole restart episode (terminate + resolve
    + spawn). Change events arriving while it is held are dropped, not
    queued: the episode re-arms watches from its own fresh walk.
    """

    def __init__(
        self,
        script: Path,
        args: Sequence[str],
        *,
        pipeline: CyclePipeline,
        launcher: ProcessLauncher,
        watcher: Optional[FileWatcher] = None,
        watch: bool = False,
        save: bool = False,
        console: Optional[Console] = None,
        handle_signals: bool = True,
    ) -> None:
        if watch and watcher is None:
            raise ValueError("watch mode needs a FileWatcher")
        self.script = Path(script)
        self.args = list(args)
        self.pipeline = pipeline
        self.launcher = launcher
        self.watcher = watcher
        self.watch = watch
        self.save = save
        self.console = console or Console(stderr=True)
        self.handle_signals = handle_signals

        self.state = SupervisorState.IDLE
        self._child: ChildProcess | None = None
        self._busy = False
        self._stopped: asyncio.Event | None = None
        self._stop_signal: int | None = None
        self._fatal: BaseException | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def policy(self) -> FailurePolicy:
        return FailurePolicy.IDLE if self.watch else FailurePolicy.FATAL

    @property
    def child(self) -> ChildProcess | None:
        return self._child

    async def run(self) -> int:
        """
        Run until the script ends (single run) or until stopped (watch mode).

        Returns:
            Exit code for the supervising process.

        Raises:
            CycleError: A cycle failed outside watch mode.
            ManifestError: ``--save`` could not create or validate the manifest.
            SpawnError: The script could not be started.
        """
        if self.save:
            await self.pipeline.manifest.ensure_exists()

        if self.watch:
            return await self._run_watching()
        return await self._run_once()

    def stop(self, sig: int | None = None) -> None:
        """Leave watch mode; the running child is terminated."""
        if self._stopped is None or self._stopped.is_set():
            return
        logger.info("supervisor_stop_requested", signal=sig)
        self._stop_signal = sig
        self._stopped.set()

    # Single run

    async def _run_once(self) -> int:
        self._set_state(SupervisorState.RESOLVING)
        outcome = await self.pipeline.run(self.script, save=self.save)
        if not outcome.ok:
            self._handle_failure(outcome)

        child = await self._spawn()
        self._install_signal_handlers(forward_to=child)
        try:
            status = await child.wait()
        finally:
            self._remove_signal_handlers()

        self._child = None
        self._set_state(SupervisorState.IDLE)
        self._report_exit(status)
        return status.exit_code

    # Watch mode

    async def _run_watching(self) -> int:
        self._stopped = asyncio.Event()
        self.watcher.start(self._on_file_change)
        self._install_signal_handlers()
        try:
            self._busy = True
            await self._restart()
            await self._stopped.wait()
        finally:
            self._remove_signal_handlers()
            await self._shutdown()

        if self._fatal is not None:
            raise self._fatal
        return 128 + self._stop_signal if self._stop_signal else 0

    def _on_file_change(self, path: Path) -> None:
        if self._stopped is None or self._stopped.is_set():
            return
        if self._busy:
            logger.debug("change_ignored_cycle_in_progress", path=str(path), state=self.state.value)
            return

        self._busy = True
        logger.info("watched_file_changed", path=str(path))
        task = asyncio.create_task(self._restart())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _restart(self) -> None:
        """One restart episode. The caller has already taken the guard."""
        try:
            child = self._child
            if child is not None and child.is_alive:
                self._set_state(SupervisorState.TERMINATING)
                status = await child.terminate_and_wait()
                self._report(f"script exited (exit code: {status.code}, signal: {status.signal_name}), restarting")
            self._child = None

            self._set_state(SupervisorState.RESOLVING)
            outcome = await self.pipeline.run(self.script, save=self.save)
            if not outcome.ok:
                self._handle_failure(outcome)
                return

            await self._rearm(outcome.context.visited_paths)
            child = await self._spawn()
            self._monitor(child)
        except Exception as e:
            logger.error("supervisor_fatal", error_type=type(e).__name__, error=str(e))
            self._fatal = e
            self._stopped.set()
        finally:
            self._busy = False

    async def _rearm(self, paths: list[Path]) -> None:
        # Unscheduling joins the observer's emitter threads
        await asyncio.to_thread(self.watcher.clear)
        await asyncio.to_thread(self.watcher.watch, paths)
        logger.info("watch_set_rebuilt", files=[str(p) for p in paths])

    def _monitor(self, child: ChildProcess) -> None:
        async def _wait_for_exit() -> None:
            status = await child.wait()
            # A restart episode that terminated this child reports the exit itself
            if self._child is child and self.state is SupervisorState.RUNNING:
                self._child = None
                self._set_state(SupervisorState.IDLE)
                self._report_exit(status)
                self._report("waiting for file changes")

        task = asyncio.create_task(_wait_for_exit())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        child = self._child
        if child is not None and child.is_alive:
            self._set_state(SupervisorState.TERMINATING)
            await child.terminate_and_wait()
        self._child = None
        self._set_state(SupervisorState.IDLE)
        await asyncio.to_thread(self.watcher.stop)

    # Shared steps

    async def _spawn(self) -> ChildProcess:
        if self._child is not None and self._child.is_alive:
            raise AutodepError("refusing to start a second child process", {"pid": self._child.pid})

        self._report("(re)starting")
        child = await self.launcher.spawn(self.script, self.args)
        self._child = child
        self._set_state(SupervisorState.RUNNING)
        return child

    def _handle_failure(self, outcome: CycleOutcome) -> None:
        error = outcome.error
        if self.policy is FailurePolicy.FATAL:
            # Reported by the caller on its way out
            raise error
        self._report(f"[red]{escape(str(error))}[/red]")
        self._set_state(SupervisorState.IDLE)
        self._report("waiting for file changes before retrying")

    def _set_state(self, state: SupervisorState) -> None:
        if state is not self.state:
            logger.debug("supervisor_state", previous=self.state.value, state=state.value)
            self.state = state

    def _report(self, message: str) -> None:
        self.console.print(f"[bold magenta]\\[autodep][/bold magenta] {message}", highlight=False)

    def _report_exit(self, status: ExitStatus) -> None:
        self._report(f"script exited, exit code: {status.code}, signal: {status.signal_name}")

    def _install_signal_handlers(self, forward_to: ChildProcess | None = None) -> None:
        if not self.handle_signals:
            return
        loop = asyncio.get_running_loop()
        for sig in _STOP_SIGNALS:
            if forward_to is None:
                callback, arguments = self.stop, (sig,)
            elif sig == signal.SIGINT:
                # The terminal already delivers SIGINT to the child's process group
                callback, arguments = (lambda: None), ()
            else:
                callback, arguments = forward_to.send_signal, (sig,)
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, callback, *arguments)

    def _remove_signal_handlers(self) -> None:
        if not self.handle_signals:
            return
        loop = asyncio.get_running_loop()
        for sig in _STOP_SIGNALS:
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.remove_signal_handler(sig)
