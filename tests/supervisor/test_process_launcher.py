"""Tests for autodep.supervisor.process_launcher"""

import asyncio
import signal
import sys

import pytest

from autodep.shared.domain.exceptions import SpawnError
from autodep.supervisor.process_launcher import ExitStatus, ProcessLauncher


class TestExitStatus:
    """Test exit status interpretation."""

    def test_normal_exit(self):
        status = ExitStatus.from_returncode(3)

        assert status.code == 3
        assert status.signal is None
        assert status.exit_code == 3
        assert status.signal_name is None

    def test_signal_death(self):
        status = ExitStatus.from_returncode(-signal.SIGKILL)

        assert status.code is None
        assert status.signal == signal.SIGKILL
        assert status.exit_code == 128 + signal.SIGKILL
        assert status.signal_name == "SIGKILL"


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal semantics")
class TestProcessLauncher:
    """Test spawning real interpreter processes."""

    @pytest.mark.asyncio
    async def test_exit_code_and_args(self, write_module, project_root):
        script = write_module("child.py", """
            import sys
            sys.exit(int(sys.argv[1]) + len(sys.argv))
        """)

        child = await ProcessLauncher(cwd=project_root).spawn(script, ["4", "extra"])
        status = await child.wait()

        assert child.args == [str(script), "4", "extra"]
        assert status.code == 7
        assert not child.is_alive

    @pytest.mark.asyncio
    async def test_terminate_and_wait(self, write_module):
        script = write_module("sleeper.py", """
            import time
            time.sleep(30)
        """)

        child = await ProcessLauncher().spawn(script)
        assert child.is_alive

        status = await child.terminate_and_wait()

        assert status.signal == signal.SIGTERM
        assert status.exit_code == 128 + signal.SIGTERM
        assert not child.is_alive

    @pytest.mark.asyncio
    async def test_wait_from_several_waiters(self, write_module):
        script = write_module("quick.py", "raise SystemExit(5)\n")

        child = await ProcessLauncher().spawn(script)
        first, second = await asyncio.gather(child.wait(), child.wait())

        assert first == second == ExitStatus(code=5)

    @pytest.mark.asyncio
    async def test_terminate_after_exit_is_harmless(self, write_module):
        script = write_module("done.py", "")

        child = await ProcessLauncher().spawn(script)
        await child.wait()
        child.terminate()
        child.send_signal(signal.SIGTERM)

        assert (await child.terminate_and_wait()).code == 0

    @pytest.mark.asyncio
    async def test_missing_interpreter_raises_spawn_error(self, write_module, project_root):
        script = write_module("main.py", "")

        with pytest.raises(SpawnError):
            await ProcessLauncher(python=str(project_root / "no-such-python")).spawn(script)
