"""Install orchestration: one installer call per cycle with the whole pending batch."""

from __future__ import annotations

from autodep.services.dependencies.dependency_manager import DependencyManager
from autodep.services.dependencies.models import PendingInstallSet
from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class InstallOrchestrator:
    """Hands the pending install set to the installer as a single batch."""

    def __init__(self, installer: DependencyManager) -> None:
        self.installer = installer

    async def install(self, pending: PendingInstallSet, save: bool = False) -> list[str]:
        """
        Install everything pending.

        Returns:
            The specs that were installed (empty when nothing was pending).

        Raises:
            InstallError: The batch failed. Not retried.
        """
        if not pending:
            logger.debug("all_dependencies_met")
            return []

        specs = pending.specs
        await self.installer.install_async(specs, save=save)
        return specs
