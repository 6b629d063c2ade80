"""
Dependency graph walker.

Recursively visits the project's own modules starting at the entry script,
collecting every local file it reaches and the names of the external
packages they import. External packages are recorded, never walked.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiofiles

from autodep.discovery.application.import_extractor import ImportExtractor
from autodep.discovery.application.module_resolver import ModuleResolver
from autodep.discovery.domain.models import ExternalPackage, LocalModule, WalkResult
from autodep.pipeline.domain.cycle_context import CycleContext
from autodep.shared.domain.exceptions import ResolutionError
from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class DependencyWalker:
    """
    Walks the local import graph of a script.

    Specifiers of one file are classified concurrently, but results are
    consumed in declared order: the file's external packages are recorded
    first, then its local modules are walked depth-first. Discovery order is
    therefore deterministic. Any ParseError or ResolutionError aborts the
    whole walk.
    """

    def __init__(self, resolver: ModuleResolver, extractor: ImportExtractor | None = None) -> None:
        self.resolver = resolver
        self.extractor = extractor or ImportExtractor()

    async def walk(self, context: CycleContext) -> WalkResult:
        """Walk from ``context.entry``, filling ``context.visited`` and ``context.external_names``."""
        entry = self.resolver.resolve_entry(context.entry)
        context.entry = entry
        await self._visit(entry, context)

        logger.info(
            "dependency_walk_complete",
            entry=str(entry),
            files=len(context.visited),
            externals=list(context.external_names),
        )
        return WalkResult(visited=list(context.visited), external_names=list(context.external_names))

    async def _visit(self, path: Path, context: CycleContext) -> None:
        # Cycle / diamond short-circuit
        if not context.visited.add(path):
            return

        source = await self._read(path)
        specifiers = self.extractor.extract(source, path)
        if not specifiers:
            return

        base_dir = path.parent
        classified = await asyncio.gather(
            *(self.resolver.classify_async(specifier, base_dir) for specifier in specifiers),
            return_exceptions=True,
        )

        local_paths: list[Path] = []
        for specifier, target in zip(specifiers, classified):
            if isinstance(target, BaseException):
                # First failure in declared order wins
                raise target
            if isinstance(target, LocalModule):
                local_paths.append(target.path)
            elif isinstance(target, ExternalPackage):
                if context.external_names.add(target.name):
                    logger.debug("external_package_found", name=target.name, specifier=specifier, path=str(path))

        for local_path in local_paths:
            await self._visit(local_path, context)

    @staticmethod
    async def _read(path: Path) -> bytes:
        # Decoding is left to the parser so a BOM or coding cookie is honoured
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.warning("module_read_failed", path=str(path), error=str(e))
            raise ResolutionError(str(path), path.parent, f"unreadable file ({e})") from e
