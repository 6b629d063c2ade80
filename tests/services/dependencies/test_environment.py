"""
Tests for autodep.services.dependencies.environment and import_names

Verifies:
1. Importability checks never import the module
2. Distribution names come from installed metadata, then known aliases
3. Versions are read from distribution metadata
4. Names shared by several distributions are recognised as namespaces
"""

from unittest.mock import patch

from autodep.services.dependencies.environment import InstalledEnvironment
from autodep.services.dependencies.import_names import IMPORT_TO_PIP, NAMESPACE_PACKAGES, pip_name_for


class TestImportNames:
    """Test import-name to pip-name aliases."""

    def test_known_aliases(self):
        assert pip_name_for("yaml") == "pyyaml"
        assert pip_name_for("PIL") == "Pillow"
        assert pip_name_for("sklearn") == "scikit-learn"

    def test_unknown_name_unchanged(self):
        assert pip_name_for("chalk") == "chalk"

    def test_aliases_are_top_level_names(self):
        assert all("." not in name for name in IMPORT_TO_PIP)

    def test_namespace_roots_have_no_alias(self):
        assert not NAMESPACE_PACKAGES & IMPORT_TO_PIP.keys()


class TestInstalledEnvironment:
    """Test lookups against the running interpreter."""

    def test_is_installed(self):
        env = InstalledEnvironment()

        assert env.is_installed("json") is True
        assert env.is_installed("pytest") is True
        assert env.is_installed("definitely_not_a_real_package_xyz_123") is False

    def test_distribution_from_metadata(self):
        env = InstalledEnvironment()

        with patch("importlib.metadata.packages_distributions", return_value={"yaml": ["PyYAML"]}):
            assert env.distribution_name("yaml") == "PyYAML"

    def test_distribution_falls_back_to_alias(self):
        env = InstalledEnvironment()

        with patch("importlib.metadata.packages_distributions", return_value={}):
            assert env.distribution_name("sklearn") == "scikit-learn"
            assert env.distribution_name("chalk") == "chalk"

    def test_metadata_cached_until_refresh(self):
        env = InstalledEnvironment()

        with patch("importlib.metadata.packages_distributions", return_value={}) as lookup:
            env.distribution_name("a")
            env.distribution_name("b")
            env.refresh()
            env.distribution_name("c")

        assert lookup.call_count == 2

    def test_distribution_names_deduplicated(self):
        env = InstalledEnvironment()
        providers = {"google": ["protobuf", "google-auth", "Protobuf"]}

        with patch("importlib.metadata.packages_distributions", return_value=providers):
            assert env.distribution_names("google") == ["protobuf", "google-auth"]
            assert env.distribution_names("chalk") == []

    def test_known_namespace_root(self):
        env = InstalledEnvironment()

        with patch("importlib.metadata.packages_distributions", return_value={}):
            assert env.is_namespace("google") is True
            assert env.is_namespace("requests") is False

    def test_several_providers_make_a_namespace(self):
        env = InstalledEnvironment()
        providers = {"acme": ["acme-core", "acme-extras"], "solo": ["solo"]}

        with patch("importlib.metadata.packages_distributions", return_value=providers):
            assert env.is_namespace("acme") is True
            assert env.is_namespace("solo") is False

    def test_installed_version(self):
        env = InstalledEnvironment()

        assert env.installed_version("pytest")
        assert env.installed_version("definitely_not_a_real_package_xyz_123") is None

    def test_missing_distribution_version(self):
        assert InstalledEnvironment.distribution_version("definitely-not-a-real-dist-xyz") is None
