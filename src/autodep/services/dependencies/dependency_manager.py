import re
import sys
from typing import List, Optional, Sequence

from packaging.requirements import InvalidRequirement, Requirement
from rich.console import Console

from autodep.services.dependencies.environment import InstalledEnvironment
from autodep.services.package_manager.manifest import ManifestStore
from autodep.shared.domain.exceptions import InstallError
from autodep.shared.infrastructure.execution.command_executor import CommandExecutor
from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_SAFE_SPEC = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_\-\[\].]*([<>=!~,*.0-9A-Za-z+\-]*)$")


class DependencyManager:
    """
    Installs packages with pip into the running interpreter's environment.

    One call installs one batch. The batch either succeeds or fails as a
    whole; nothing is retried here.
    """

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        manifest: Optional[ManifestStore] = None,
        environment: Optional[InstalledEnvironment] = None,
        python: str = sys.executable,
        extra_args: Sequence[str] = (),
        break_system_packages: bool = False,
        console: Optional[Console] = None,
    ):
        self.executor = executor or CommandExecutor()
        self.manifest = manifest
        self.environment = environment or InstalledEnvironment()
        self.python = python
        self.extra_args = list(extra_args)
        self.break_system_packages = break_system_packages
        self.console = console or Console(stderr=True)

    @property
    def is_venv(self) -> bool:
        """Check if running inside a virtual environment."""
        return (hasattr(sys, 'real_prefix') or
                (hasattr(sys, 'base_prefix') and sys.base_prefix != sys.prefix))

    def build_command(self, specs: List[str]) -> List[str]:
        cmd = [self.python, "-m", "pip", "install", *specs, *self.extra_args]
        if not self.is_venv:
            if self.break_system_packages:
                cmd.append("--break-system-packages")
            else:
                logger.warning("system_python_detected", hint="set AUTODEP_PIP_BREAK_SYSTEM_PACKAGES=1 if pip refuses")
        return cmd

    async def install_async(self, specs: List[str], save: bool = False) -> None:
        """
        Install a batch of requirement strings.

        Args:
            specs: Bare names and/or ``name<specifier>`` requirements
            save: Also record the installed specs in the manifest

        Raises:
            InstallError: pip failed or a spec is unsafe to pass on the command line.
        """
        if not specs:
            return

        unsafe = [spec for spec in specs if not _SAFE_SPEC.match(spec)]
        if unsafe:
            logger.warning("rejected_unsafe_package_spec", specs=unsafe)
            raise InstallError(specs, f"refusing unsafe package spec(s): {', '.join(unsafe)}")

        logger.info("installing_dependencies", packages=specs)
        self.console.print(f"[dim]Installing {', '.join(specs)}...[/dim]")

        result = await self.executor.run_async(self.build_command(specs))

        if not result.is_success:
            stderr = result.stderr.strip()
            logger.error("dependency_install_failed", return_code=result.exit_code, stderr=stderr[-500:])
            self.console.print("[red]Installation failed[/red]")
            raise InstallError(specs, stderr.splitlines()[-1] if stderr else f"pip exited with {result.exit_code}")

        self.environment.refresh()
        logger.info("dependency_install_success", packages=specs)
        self.console.print(f"[green]Installed {', '.join(specs)}[/green]")

        if save:
            await self._save(specs)

    async def _save(self, specs: List[str]) -> None:
        if self.manifest is None:
            logger.warning("save_requested_without_manifest", packages=specs)
            return

        entries = {}
        for spec in specs:
            try:
                requirement = Requirement(spec)
            except InvalidRequirement:
                entries[spec] = "*"
                continue
            if str(requirement.specifier):
                entries[requirement.name] = str(requirement.specifier)
                continue
            version = self.environment.distribution_version(requirement.name)
            entries[requirement.name] = f">={version}" if version else "*"

        await self.manifest.add_dependencies(entries)
