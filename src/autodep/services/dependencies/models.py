"""Domain models for dependency reconciliation and installation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping

from packaging.utils import canonicalize_name

from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PendingInstall:
    """One package scheduled for installation."""

    name: str
    requirement: str


class PendingInstallSet:
    """
    Packages awaiting install for the current cycle.

    Insertion order is preserved and entries are deduplicated by canonical
    distribution name: a name already scheduled is never replaced.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PendingInstall] = {}

    def add(self, name: str, requirement: str | None = None) -> bool:
        """Schedule ``requirement`` (defaults to the bare name). Returns False if already scheduled."""
        key = canonicalize_name(name)
        if key in self._entries:
            return False
        self._entries[key] = PendingInstall(name=name, requirement=requirement or name)
        return True

    def clear(self) -> None:
        self._entries.clear()

    @property
    def specs(self) -> list[str]:
        """Requirement strings in discovery order."""
        return [entry.requirement for entry in self._entries.values()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonicalize_name(name) in self._entries

    def __iter__(self) -> Iterator[PendingInstall]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"PendingInstallSet({self.specs!r})"


class DeclaredDependencies:
    """Declared version ranges keyed by canonical distribution name."""

    def __init__(self, ranges: Mapping[str, str] | None = None) -> None:
        self._ranges: dict[str, str] = {}
        for name, value in (ranges or {}).items():
            self.declare(name, value)

    @classmethod
    def merged(cls, *sections: Mapping[str, str]) -> DeclaredDependencies:
        """Merge manifest sections; the first declaration of a name wins."""
        declared = cls()
        for section in sections:
            for name, value in section.items():
                declared.declare(name, value)
        return declared

    def declare(self, name: str, value: str) -> None:
        key = canonicalize_name(name)
        if key in self._ranges:
            logger.debug("duplicate_declaration_ignored", name=name, kept=self._ranges[key], ignored=value)
            return
        self._ranges[key] = value

    def get(self, name: str) -> str | None:
        return self._ranges.get(canonicalize_name(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonicalize_name(name) in self._ranges

    def __len__(self) -> int:
        return len(self._ranges)
