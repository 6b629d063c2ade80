"""
Installed environment lookups.

Answers "is this module importable?" and "which version of its
distribution is installed?" for the interpreter the script will run under.
"""

from __future__ import annotations

import importlib
import importlib.metadata
import importlib.util

from packaging.utils import canonicalize_name

from autodep.services.dependencies.import_names import NAMESPACE_PACKAGES, pip_name_for
from autodep.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class InstalledEnvironment:
    """Module and distribution lookups against the running interpreter."""

    def __init__(self) -> None:
        self._distributions: dict[str, list[str]] | None = None

    def refresh(self) -> None:
        """Forget cached metadata, e.g. after an install."""
        importlib.invalidate_caches()
        self._distributions = None

    def is_installed(self, import_name: str) -> bool:
        """Check if a top-level module can be imported without importing it."""
        try:
            return importlib.util.find_spec(import_name) is not None
        except (ImportError, ValueError):
            return False

    def distribution_names(self, import_name: str) -> list[str]:
        """Every installed distribution that ships files under ``import_name``."""
        if self._distributions is None:
            self._distributions = importlib.metadata.packages_distributions()
        # Metadata may list one distribution more than once
        seen: set[str] = set()
        providers: list[str] = []
        for dist_name in self._distributions.get(import_name, []):
            key = canonicalize_name(dist_name)
            if key not in seen:
                seen.add(key)
                providers.append(dist_name)
        return providers

    def distribution_name(self, import_name: str) -> str:
        """Distribution providing ``import_name``: installed metadata first, then known aliases."""
        providers = self.distribution_names(import_name)
        if providers:
            return providers[0]
        return pip_name_for(import_name)

    def is_namespace(self, import_name: str) -> bool:
        """
        True when no single distribution can stand for ``import_name``.

        Either the name is a known namespace root, or installed metadata
        lists more than one distribution shipping files below it.
        """
        return import_name in NAMESPACE_PACKAGES or len(self.distribution_names(import_name)) > 1

    def installed_version(self, import_name: str) -> str | None:
        """Installed version of the distribution providing ``import_name``, if known."""
        return self.distribution_version(self.distribution_name(import_name))

    @staticmethod
    def distribution_version(dist_name: str) -> str | None:
        try:
            return importlib.metadata.version(dist_name)
        except importlib.metadata.PackageNotFoundError:
            logger.debug("distribution_metadata_missing", distribution=canonicalize_name(dist_name))
            return None
