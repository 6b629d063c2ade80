"""
Tests for autodep.services.dependencies.version_ranges

Verifies:
1. PEP 440 specifiers pass through unchanged
2. Caret, tilde and bare-version shorthand are translated
3. Direct references are reported as "not a range"
4. satisfies() checks installed versions against declared ranges
"""

import pytest

from autodep.services.dependencies.version_ranges import parse_range, satisfies, to_specifier


class TestToSpecifier:
    """Test declared range normalization."""

    @pytest.mark.parametrize(
        "declared, expected",
        [
            (">=1.2,<2", ">=1.2,<2"),
            (">= 1.2, < 2", ">=1.2,<2"),
            ("~=1.4", "~=1.4"),
            ("==2.0.1", "==2.0.1"),
            ("1.2.3", "==1.2.3"),
            ("^1.2.0", ">=1.2.0,<2.0.0"),
            ("^0.2.3", ">=0.2.3,<0.3.0"),
            ("^0.0.3", ">=0.0.3,<0.0.4"),
            ("~1.2.3", ">=1.2.3,<1.3.0"),
            ("~1", ">=1,<2"),
        ],
    )
    def test_translations(self, declared, expected):
        assert to_specifier(declared) == expected

    @pytest.mark.parametrize("declared", ["*", "", "latest", None, "  "])
    def test_any_version(self, declared):
        assert to_specifier(declared) == ""

    @pytest.mark.parametrize(
        "declared",
        ["git+https://github.com/org/repo.git", "file:../local-pkg", "^banana", "not a version"],
    )
    def test_not_a_range(self, declared):
        assert to_specifier(declared) is None
        assert parse_range(declared) is None


class TestSatisfies:
    """Test installed-version checks."""

    def test_caret_satisfied(self):
        assert satisfies("1.3.0", "^1.2.0") is True

    def test_caret_below_range(self):
        assert satisfies("0.9.0", "^1.2.0") is False

    def test_caret_above_range(self):
        assert satisfies("2.0.0", "^1.2.0") is False

    def test_any_version_always_satisfied(self):
        assert satisfies("0.0.1", "*") is True

    def test_prerelease_considered(self):
        assert satisfies("2.0.0rc1", ">=2.0.0rc1") is True

    def test_uninterpretable_inputs(self):
        assert satisfies("1.0", "git+https://example.com/x.git") is None
        assert satisfies("not-a-version", ">=1.0") is None
