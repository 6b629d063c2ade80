"""
Module resolution.

Maps import specifiers to project files the way the interpreter does for a
script: relative imports are looked up from the importing file's package,
absolute imports first from the script's own directory (``sys.path[0]``).
Anything that is not found locally is an external package.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from autodep.discovery.domain.models import ClassifiedSpecifier, ExternalPackage, LocalModule
from autodep.shared.domain.exceptions import ResolutionError
from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

SOURCE_SUFFIX = ".py"
PACKAGE_INDEX = "__init__.py"

_ALWAYS_BUILTIN = frozenset({"__future__", "__main__"})


def is_relative(specifier: str) -> bool:
    """Lexical classification: a leading dot marks a local specifier."""
    return specifier.startswith(".")


def top_level_name(specifier: str) -> str:
    return specifier.lstrip(".").split(".")[0]


class ModuleResolver:
    """
    Resolves specifiers relative to a script root.

    Args:
        root_dir: Directory of the entry script; absolute imports are
            looked up here before being considered external.
    """

    def __init__(self, root_dir: str | Path) -> None:
        self.root_dir = Path(root_dir).resolve()

    @classmethod
    def for_script(cls, script: str | Path) -> ModuleResolver:
        """
        Resolver rooted where the interpreter puts ``sys.path[0]`` for ``script``.

        That is the script's directory, or the directory itself when the
        script is a directory run through its ``__main__.py``.
        """
        script = Path(script)
        return cls(script if script.is_dir() else script.parent)

    @staticmethod
    def is_builtin(name: str) -> bool:
        """True for interpreter-provided modules that never need installing."""
        top = top_level_name(name)
        return top in _ALWAYS_BUILTIN or top in sys.builtin_module_names or top in sys.stdlib_module_names

    def resolve_entry(self, path: str | Path) -> Path:
        """Canonical path of the entry script."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = Path.cwd() / candidate
        if candidate.is_dir() and (candidate / "__main__.py").is_file():
            candidate = candidate / "__main__.py"
        if not candidate.is_file():
            raise ResolutionError(str(path), Path.cwd(), "no such file")
        return candidate.resolve()

    def resolve(self, specifier: str, base_dir: str | Path) -> Path:
        """
        Resolve a specifier to the canonical path of its module file.

        Dotted names resolve to the deepest existing module of the chain, so
        ``pkg.name`` where ``name`` is an attribute of ``pkg`` resolves to
        ``pkg/__init__.py``.

        Raises:
            ResolutionError: Nothing matching exists.
        """
        base = Path(base_dir)
        if is_relative(specifier):
            level = len(specifier) - len(specifier.lstrip("."))
            start = base
            for _ in range(level - 1):
                if start.parent == start:
                    raise ResolutionError(specifier, base_dir, "relative import beyond filesystem root")
                start = start.parent
            parts = [p for p in specifier[level:].split(".") if p]
            found = self._find_module(start, parts)
            if found is None and len(parts) == 1:
                # ``from . import name`` where name is defined by the package itself
                found = self._find_module(start, [])
            if found is None and not parts:
                raise ResolutionError(specifier, base_dir, f"{start} is not a package")
        else:
            found = self._find_module(self.root_dir, specifier.split("."))

        if found is None:
            raise ResolutionError(specifier, base_dir)
        return found.resolve()

    def classify(self, specifier: str, base_dir: str | Path) -> ClassifiedSpecifier:
        """
        Classify a specifier as a local module (resolved) or an external package.

        Raises:
            ResolutionError: A relative specifier does not resolve.
        """
        if is_relative(specifier):
            return LocalModule(self.resolve(specifier, base_dir))

        found = self._find_module(self.root_dir, specifier.split("."))
        if found is not None:
            return LocalModule(found.resolve())
        return ExternalPackage(top_level_name(specifier))

    async def classify_async(self, specifier: str, base_dir: str | Path) -> ClassifiedSpecifier:
        return await asyncio.to_thread(self.classify, specifier, base_dir)

    @staticmethod
    def _find_module(start: Path, parts: list[str]) -> Path | None:
        """Deepest module file found walking ``parts`` down from ``start``."""
        if not parts:
            index = start / PACKAGE_INDEX
            return index if index.is_file() else None

        current = start
        found: Path | None = None
        for position, part in enumerate(parts):
            package_dir = current / part
            module_file = current / f"{part}{SOURCE_SUFFIX}"
            if (package_dir / PACKAGE_INDEX).is_file():
                found = package_dir / PACKAGE_INDEX
                current = package_dir
            elif module_file.is_file():
                return module_file
            elif package_dir.is_dir() and position > 0:
                # Namespace package below a real module chain
                current = package_dir
            elif position == 0 and package_dir.is_dir() and _has_sources(package_dir):
                current = package_dir
            else:
                break
        return found


def _has_sources(directory: Path) -> bool:
    """A top-level namespace package only counts when it holds Python files."""
    try:
        return any(child.suffix == SOURCE_SUFFIX for child in directory.iterdir())
    except OSError:
        return False
