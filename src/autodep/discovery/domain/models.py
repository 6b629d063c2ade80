"""Domain models for dependency discovery."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Union


@dataclass(frozen=True)
class LocalModule:
    """A specifier that maps to a source file of the project."""

    path: Path


@dataclass(frozen=True)
class ExternalPackage:
    """A specifier that names a third-party (or builtin) top-level module."""

    name: str


ClassifiedSpecifier = Union[LocalModule, ExternalPackage]


class OrderedSet:
    """Insertion-ordered set; re-adding an existing item is a no-op."""

    def __init__(self, items: Iterable = ()) -> None:
        self._items: dict = dict.fromkeys(items)

    def add(self, item) -> bool:
        """Add item. Returns False if it was already present."""
        if item in self._items:
            return False
        self._items[item] = None
        return True

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, item) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OrderedSet):
            return list(self) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"OrderedSet({list(self._items)!r})"


@dataclass
class WalkResult:
    """Output of one dependency walk."""

    visited: list[Path] = field(default_factory=list)
    external_names: list[str] = field(default_factory=list)
