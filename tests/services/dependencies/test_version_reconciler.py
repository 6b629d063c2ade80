"""
Tests for autodep.services.dependencies.version_reconciler

Verifies:
1. Missing packages are scheduled by bare distribution name
2. Installed packages outside their declared range are scheduled with the range
3. Builtins, satisfied and unparseable declarations are skipped
4. The pending set is deduplicated and keeps discovery order
5. Namespace roots are never installed by their bare name
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from autodep.discovery.application.module_resolver import ModuleResolver
from autodep.discovery.domain.models import OrderedSet
from autodep.pipeline.domain.cycle_context import CycleContext
from autodep.services.dependencies.models import DeclaredDependencies
from autodep.services.dependencies.version_reconciler import VersionReconciler


def _context(names, declared=None):
    return CycleContext(
        entry=Path("main.py"),
        external_names=OrderedSet(names),
        declared=DeclaredDependencies(declared or {}),
    )


@pytest.fixture
def reconciler(fake_environment):
    return VersionReconciler(fake_environment, ModuleResolver.is_builtin)


class TestReconcile:
    """Test pending install decisions."""

    @pytest.mark.asyncio
    async def test_missing_packages_scheduled_in_order(self, reconciler):
        pending = await reconciler.reconcile(_context(["lodash", "chalk"]))

        assert pending.specs == ["lodash", "chalk"]

    @pytest.mark.asyncio
    async def test_missing_package_uses_distribution_name(self, reconciler, fake_environment):
        fake_environment.aliases["yaml"] = "pyyaml"

        pending = await reconciler.reconcile(_context(["yaml"]))

        assert pending.specs == ["pyyaml"]

    @pytest.mark.asyncio
    async def test_declared_range_satisfied(self, reconciler, fake_environment):
        fake_environment.installed["pkg"] = ("pkg", "1.3.0")

        pending = await reconciler.reconcile(_context(["pkg"], {"pkg": "^1.2.0"}))

        assert pending.specs == []

    @pytest.mark.asyncio
    async def test_declared_range_unsatisfied(self, reconciler, fake_environment):
        fake_environment.installed["pkg"] = ("pkg", "0.9.0")

        pending = await reconciler.reconcile(_context(["pkg"], {"pkg": "^1.2.0"}))

        assert pending.specs == ["pkg>=1.2.0,<2.0.0"]

    @pytest.mark.asyncio
    async def test_declared_by_distribution_name(self, reconciler, fake_environment):
        fake_environment.installed["yaml"] = ("PyYAML", "5.4")

        pending = await reconciler.reconcile(_context(["yaml"], {"pyyaml": ">=6.0"}))

        assert pending.specs == ["PyYAML>=6.0"]

    @pytest.mark.asyncio
    async def test_installed_without_declaration(self, reconciler, fake_environment):
        fake_environment.installed["requests"] = ("requests", "2.31.0")

        pending = await reconciler.reconcile(_context(["requests"]))

        assert pending.specs == []

    @pytest.mark.asyncio
    async def test_builtins_never_scheduled(self, reconciler):
        pending = await reconciler.reconcile(_context(["os", "json", "sys"], {"os": "^1.0"}))

        assert pending.specs == []

    @pytest.mark.asyncio
    async def test_unparseable_declaration_skipped(self, reconciler, fake_environment):
        fake_environment.installed["tool"] = ("tool", "0.1.0")

        pending = await reconciler.reconcile(_context(["tool"], {"tool": "git+https://example.com/tool.git"}))

        assert pending.specs == []

    @pytest.mark.asyncio
    async def test_unknown_installed_version_skipped(self, reconciler, fake_environment):
        fake_environment.installed["vendored"] = ("vendored", None)

        pending = await reconciler.reconcile(_context(["vendored"], {"vendored": ">=2.0"}))

        assert pending.specs == []

    @pytest.mark.asyncio
    async def test_shared_distribution_scheduled_once(self, reconciler, fake_environment):
        fake_environment.aliases.update({"google_a": "google-suite", "google_b": "google-suite"})

        pending = await reconciler.reconcile(_context(["google_a", "google_b"]))

        assert pending.specs == ["google-suite"]

    @pytest.mark.asyncio
    async def test_environment_refreshed(self, reconciler, fake_environment):
        await reconciler.reconcile(_context([]))

        assert fake_environment.refresh_count == 1

    @pytest.mark.asyncio
    async def test_pending_lives_on_context(self, reconciler):
        context = _context(["lodash"])

        pending = await reconciler.reconcile(context)

        assert pending is context.pending


class TestNamespacePackages:
    """Test top-level names shared by several distributions."""

    @pytest.mark.asyncio
    async def test_missing_namespace_root_not_installed_by_name(self, reconciler, fake_environment):
        fake_environment.namespaces["google"] = []

        pending = await reconciler.reconcile(_context(["google", "chalk"]))

        assert pending.specs == ["chalk"]

    @pytest.mark.asyncio
    async def test_partially_installed_namespace_skipped(self, reconciler, fake_environment):
        fake_environment.namespaces["google"] = [("protobuf", "4.25.0"), ("google-auth", "2.0.0")]

        pending = await reconciler.reconcile(_context(["google"]))

        assert pending.specs == []

    @pytest.mark.asyncio
    async def test_declared_provider_range_checked(self, reconciler, fake_environment):
        fake_environment.namespaces["google"] = [("protobuf", "3.20.0"), ("google-auth", "2.0.0")]

        pending = await reconciler.reconcile(_context(["google"], {"protobuf": ">=4.0", "google-auth": "^2.0.0"}))

        assert pending.specs == ["protobuf>=4.0"]

    @pytest.mark.asyncio
    async def test_namespace_hint_logged(self, reconciler, fake_environment):
        fake_environment.namespaces["azure"] = [("azure-core", "1.30.0")]

        with patch("autodep.services.dependencies.version_reconciler.logger") as logger:
            await reconciler.reconcile(_context(["azure"]))

        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "namespace_package_skipped"
        assert logger.warning.call_args.kwargs["providers"] == ["azure-core"]
