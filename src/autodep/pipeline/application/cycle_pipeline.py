"""
Cycle pipeline.

Runs the stages of one cycle strictly in sequence:

    manifest -> walk -> reconcile -> install

Each stage completes (including any fan-out inside it) before the next
starts. Every stage reports failure through CycleError; the pipeline turns
that into a failed CycleOutcome instead of raising.
"""

from __future__ import annotations

import time
from pathlib import Path

from autodep.discovery.application.dependency_walker import DependencyWalker
from autodep.pipeline.domain.cycle_context import CycleContext, CycleOutcome
from autodep.services.dependencies.install_orchestrator import InstallOrchestrator
from autodep.services.dependencies.models import DeclaredDependencies
from autodep.services.dependencies.version_reconciler import VersionReconciler
from autodep.services.package_manager.manifest import ManifestStore
from autodep.shared.domain.exceptions import CycleError
from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CyclePipeline:
    """Composes walker, reconciler and install orchestrator into one cycle."""

    def __init__(
        self,
        walker: DependencyWalker,
        reconciler: VersionReconciler,
        orchestrator: InstallOrchestrator,
        manifest: ManifestStore,
    ) -> None:
        self.walker = walker
        self.reconciler = reconciler
        self.orchestrator = orchestrator
        self.manifest = manifest

    async def run(self, entry: Path, save: bool = False) -> CycleOutcome:
        """Execute one full cycle for ``entry`` with a fresh context."""
        context = CycleContext(entry=entry)
        started = time.perf_counter()

        try:
            document = await self.manifest.read()
            context.declared = document.declared() if document else DeclaredDependencies()

            await self.walker.walk(context)
            await self.reconciler.reconcile(context)
            await self.orchestrator.install(context.pending, save=save)
        except CycleError as e:
            logger.warning(
                "cycle_failed",
                entry=str(entry),
                error_type=type(e).__name__,
                error=str(e),
            )
            return CycleOutcome.failed(context, e)

        logger.info(
            "cycle_succeeded",
            entry=str(context.entry),
            files=len(context.visited),
            installed=context.pending.specs,
            duration=time.perf_counter() - started,
        )
        return CycleOutcome.succeeded(context)
