"""
Version reconciliation.

Decides which of the discovered external packages must be installed,
either because they are missing or because the installed version does not
satisfy the range declared in the manifest.
"""

from __future__ import annotations

from typing import Callable

from autodep.pipeline.domain.cycle_context import CycleContext
from autodep.services.dependencies.environment import InstalledEnvironment
from autodep.services.dependencies.models import DeclaredDependencies, PendingInstallSet
from autodep.services.dependencies.version_ranges import satisfies, to_specifier
from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class VersionReconciler:
    """
    Fills the cycle's pending install set.

    Args:
        environment: Installed-environment lookups
        is_builtin: Predicate for interpreter-provided modules
    """

    def __init__(self, environment: InstalledEnvironment, is_builtin: Callable[[str], bool]) -> None:
        self.environment = environment
        self.is_builtin = is_builtin

    async def reconcile(self, context: CycleContext) -> PendingInstallSet:
        self.environment.refresh()
        pending = context.pending

        for import_name in context.external_names:
            if self.is_builtin(import_name):
                continue

            if self.environment.is_namespace(import_name):
                self._check_namespace(pending, import_name, context.declared)
                continue

            dist_name = self.environment.distribution_name(import_name)
            if dist_name in pending:
                continue

            if not self.environment.is_installed(import_name):
                logger.info("package_missing", module=import_name, distribution=dist_name)
                pending.add(dist_name)
                continue

            declared = context.declared.get(dist_name)
            if declared is None and dist_name != import_name:
                declared = context.declared.get(import_name)
            if declared is None:
                continue

            self._check_declared(pending, dist_name, declared, self.environment.installed_version(import_name))

        logger.info("reconcile_complete", pending=pending.specs)
        return pending

    def _check_namespace(self, pending: PendingInstallSet, import_name: str, declared: DeclaredDependencies) -> None:
        """
        Range-check the declared distributions living below a namespace root.

        The root itself is never installed by name: ``pip install google``
        does not provide ``google.cloud``.
        """
        providers = self.environment.distribution_names(import_name)
        checked = [dist_name for dist_name in providers if dist_name in declared]
        if not checked:
            logger.warning(
                "namespace_package_skipped",
                module=import_name,
                providers=providers,
                hint="install the distribution that provides the imported submodule yourself",
            )
            return

        for dist_name in checked:
            if dist_name not in pending:
                self._check_declared(
                    pending, dist_name, declared.get(dist_name), self.environment.distribution_version(dist_name)
                )

    def _check_declared(
        self, pending: PendingInstallSet, dist_name: str, declared: str, installed: str | None
    ) -> None:
        specifier = to_specifier(declared)
        if specifier is None:
            # Direct references and paths cannot be range-checked
            logger.debug("declared_range_unparseable", distribution=dist_name, declared=declared)
            return

        if installed is None:
            logger.debug("installed_version_unknown", distribution=dist_name)
            return

        if satisfies(installed, declared) is False:
            logger.info(
                "package_version_mismatch",
                distribution=dist_name,
                installed=installed,
                declared=declared,
            )
            pending.add(dist_name, f"{dist_name}{specifier}")
