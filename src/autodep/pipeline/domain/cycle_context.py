"""
Cycle Context Model.

Per-cycle state shared by the walk, reconcile and install stages. A new
context is created for every cycle and passed by reference through each
stage; nothing in it survives into the next cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from autodep.discovery.domain.models import OrderedSet
from autodep.services.dependencies.models import DeclaredDependencies, PendingInstallSet
from autodep.shared.domain.exceptions import CycleError
from autodep.pipeline.domain.enums import CycleStatus


@dataclass
class CycleContext:
    """
    Shared context for one discovery -> reconcile -> install cycle.

    - visited: canonical paths walked, each at most once (next watch set)
    - external_names: top-level names of non-local imports, discovery order
    - declared: manifest ranges, read once per cycle
    - pending: packages the reconciler scheduled for install
    """

    entry: Path
    visited: OrderedSet = field(default_factory=OrderedSet)
    external_names: OrderedSet = field(default_factory=OrderedSet)
    declared: DeclaredDependencies = field(default_factory=DeclaredDependencies)
    pending: PendingInstallSet = field(default_factory=PendingInstallSet)

    @property
    def visited_paths(self) -> list[Path]:
        return list(self.visited)


@dataclass
class CycleOutcome:
    """Typed result of a cycle: either a populated context or the error that stopped it."""

    status: CycleStatus
    context: CycleContext
    error: CycleError | None = None

    @property
    def ok(self) -> bool:
        return self.status is CycleStatus.SUCCEEDED

    @classmethod
    def succeeded(cls, context: CycleContext) -> CycleOutcome:
        return cls(status=CycleStatus.SUCCEEDED, context=context)

    @classmethod
    def failed(cls, context: CycleContext, error: CycleError) -> CycleOutcome:
        return cls(status=CycleStatus.FAILED, context=context, error=error)
