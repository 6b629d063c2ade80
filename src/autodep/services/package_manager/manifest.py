"""
Manifest store.

The manifest (``autodep.yaml`` by default) declares dependency ranges:

    dependencies:
      requests: ">=2.28"
    dev-dependencies:
      pytest: "^8.0"

Writes only ever add or update entries; unknown top-level keys are kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import aiofiles
import yaml
from packaging.utils import canonicalize_name

from autodep.services.dependencies.models import DeclaredDependencies
from autodep.shared.domain.exceptions import ManifestError
from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEPENDENCIES = "dependencies"
DEV_DEPENDENCIES = "dev-dependencies"


@dataclass
class ManifestDocument:
    """Parsed manifest sections (name -> declared range)."""

    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)

    def declared(self) -> DeclaredDependencies:
        """Regular and development sections merged, first declaration wins."""
        return DeclaredDependencies.merged(self.dependencies, self.dev_dependencies)


class ManifestStore:
    """Reads and updates the YAML manifest."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    async def read(self) -> ManifestDocument | None:
        """
        Load the manifest.

        Returns:
            The parsed document, or None when no manifest exists.

        Raises:
            ManifestError: The file exists but cannot be read or is malformed.
        """
        raw = await self._load_raw()
        if raw is None:
            return None
        return ManifestDocument(
            dependencies=self._section(raw, DEPENDENCIES),
            dev_dependencies=self._section(raw, DEV_DEPENDENCIES),
        )

    async def ensure_exists(self) -> None:
        """Create an empty manifest if none exists; validate an existing one."""
        if self.exists():
            await self.read()
            return
        logger.info("manifest_created", path=str(self.path))
        await self._write_raw({DEPENDENCIES: {}, DEV_DEPENDENCIES: {}})

    async def add_dependencies(self, entries: Mapping[str, str]) -> None:
        """
        Add or update dependency ranges.

        A name already declared (in either section, compared canonically)
        is updated in place; new names go to ``dependencies``.
        """
        if not entries:
            return
        raw = await self._load_raw() or {}
        # Validates both sections before anything is modified
        self._section(raw, DEPENDENCIES)
        self._section(raw, DEV_DEPENDENCIES)

        dependencies = raw.get(DEPENDENCIES) or {}
        dev_dependencies = raw.get(DEV_DEPENDENCIES) or {}
        for name, value in entries.items():
            section, key = self._locate(name, dependencies, dev_dependencies)
            section[key] = value
        raw[DEPENDENCIES] = dependencies

        await self._write_raw(raw)
        logger.info("manifest_updated", path=str(self.path), entries=dict(entries))

    @staticmethod
    def _locate(name: str, dependencies: dict, dev_dependencies: dict) -> tuple[dict, str]:
        wanted = canonicalize_name(name)
        for section in (dependencies, dev_dependencies):
            for key in section:
                if canonicalize_name(str(key)) == wanted:
                    return section, key
        return dependencies, name

    async def _load_raw(self) -> dict[str, Any] | None:
        if not self.exists():
            return None
        try:
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                text = await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestError(self.path, f"unreadable ({e})") from e

        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ManifestError(self.path, f"invalid YAML ({e})") from e

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ManifestError(self.path, "top level must be a mapping")
        return raw

    async def _write_raw(self, raw: dict[str, Any]) -> None:
        text = yaml.safe_dump(raw, sort_keys=False, default_flow_style=False)
        try:
            async with aiofiles.open(self.path, mode="w", encoding="utf-8") as f:
                await f.write(text)
        except OSError as e:
            raise ManifestError(self.path, f"cannot write ({e})") from e

    def _section(self, raw: dict[str, Any], name: str) -> dict[str, str]:
        section = raw.get(name)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ManifestError(self.path, f"'{name}' must be a mapping of package name to version range")
        return {str(key): "*" if value is None else str(value) for key, value in section.items()}
