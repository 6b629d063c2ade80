"""Shared test fixtures for the autodep test suite."""

import asyncio
import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from autodep.discovery.application.dependency_walker import DependencyWalker
from autodep.discovery.application.module_resolver import ModuleResolver
from autodep.pipeline.application.cycle_pipeline import CyclePipeline
from autodep.services.dependencies.install_orchestrator import InstallOrchestrator
from autodep.services.dependencies.version_reconciler import VersionReconciler
from autodep.services.package_manager.manifest import ManifestStore


class FakeEnvironment:
    """In-memory stand-in for InstalledEnvironment.

    ``installed`` maps import name -> (distribution name, version or None).
    ``aliases`` maps import name -> distribution name for missing packages.
    ``namespaces`` maps a shared top-level name -> [(distribution, version)].
    """

    def __init__(self, installed=None, aliases=None, namespaces=None):
        self.installed = dict(installed or {})
        self.aliases = dict(aliases or {})
        self.namespaces = dict(namespaces or {})
        self.refresh_count = 0

    def refresh(self):
        self.refresh_count += 1

    def is_installed(self, import_name):
        return import_name in self.installed

    def distribution_names(self, import_name):
        if import_name in self.namespaces:
            return [dist for dist, _ in self.namespaces[import_name]]
        if import_name in self.installed:
            return [self.installed[import_name][0]]
        return []

    def is_namespace(self, import_name):
        return import_name in self.namespaces

    def distribution_name(self, import_name):
        if import_name in self.installed:
            return self.installed[import_name][0]
        return self.aliases.get(import_name, import_name)

    def installed_version(self, import_name):
        entry = self.installed.get(import_name)
        return entry[1] if entry else None

    def distribution_version(self, dist_name):
        providers = [entry for entries in self.namespaces.values() for entry in entries]
        for dist, version in [*self.installed.values(), *providers]:
            if dist == dist_name:
                return version
        return None


@pytest.fixture
def project_root(tmp_path):
    """Create a temporary project root directory."""
    return tmp_path


@pytest.fixture
def write_module(project_root):
    """Write a source file below the project root and return its path."""

    def _write(relative: str, source: str = "") -> Path:
        path = project_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fake_environment():
    return FakeEnvironment()


@pytest.fixture
def mock_installer():
    """Installer double recording every batch it is handed."""
    installer = MagicMock()
    installer.install_async = AsyncMock(return_value=None)
    return installer


@pytest.fixture
def make_pipeline(project_root, fake_environment, mock_installer):
    """Build a real CyclePipeline over the temporary project."""

    def _make(manifest_path=None, environment=None) -> CyclePipeline:
        resolver = ModuleResolver(project_root)
        environment = environment or fake_environment
        return CyclePipeline(
            walker=DependencyWalker(resolver),
            reconciler=VersionReconciler(environment, resolver.is_builtin),
            orchestrator=InstallOrchestrator(mock_installer),
            manifest=ManifestStore(manifest_path or project_root / "autodep.yaml"),
        )

    return _make


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Yield to the event loop until ``predicate()`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def wait_until():
    return wait_for
