"""Tests for version string handling."""

import pytest

from docgov.core.errors import ValidationError
from docgov.core.versioning import INITIAL_VERSION, bump_minor, parse_version


class TestParseVersion:

    def test_parse(self):
        assert parse_version("1.0") == (1, 0)
        assert parse_version("12.34") == (12, 34)

    @pytest.mark.parametrize("value", ["", "1", "1.0.0", "v1.0", "1.x", " 1.0", None])
    def test_malformed(self, value):
        """Test that anything but N.M is rejected."""
        with pytest.raises(ValidationError):
            parse_version(value)


class TestBumpMinor:

    def test_initial_version(self):
        assert INITIAL_VERSION == "1.0"
        assert bump_minor(INITIAL_VERSION) == "1.1"

    def test_minor_is_numeric(self):
        """Test the minor component is incremented as an integer, not a digit."""
        assert bump_minor("1.9") == "1.10"
        assert bump_minor("3.99") == "3.100"

    def test_major_unchanged(self):
        assert bump_minor("2.4") == "2.5"

    def test_malformed_fails(self):
        with pytest.raises(ValidationError):
            bump_minor("draft")
