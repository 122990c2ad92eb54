"""Tests for dialect version arithmetic."""

from datetime import date

import pytest

from catalog.dialects import all_dialect_versions, dialect_version_for
from catalog.models import DialectVersion

TODAY = date(2024, 6, 1)


class TestDialectVersionFor:
    """Ratification month rule."""

    def test_ratification_month_starts_the_year(self):
        """June of a year maps to that year's dialect."""
        assert dialect_version_for(0, date(2020, 6, 1), TODAY) == DialectVersion.yearly(2020)

    def test_before_ratification_month_uses_previous_year(self):
        assert dialect_version_for(0, date(2020, 5, 31), TODAY) == DialectVersion.yearly(2019)

    def test_offset_years_moves_reference(self):
        assert dialect_version_for(-1, date(2022, 4, 19), TODAY) == DialectVersion.yearly(2020)

    def test_es5_window(self):
        """Between December 2009 and June 2015 the dialect is ES5."""
        assert dialect_version_for(0, date(2009, 12, 1), TODAY) == DialectVersion.es5()
        assert dialect_version_for(0, date(2015, 5, 1), TODAY) == DialectVersion.es5()

    def test_before_es5_is_legacy(self):
        result = dialect_version_for(0, date(2009, 11, 30), TODAY)
        assert result == DialectVersion.legacy()
        assert result.is_legacy

    def test_future_point_is_next(self):
        result = dialect_version_for(1, TODAY, TODAY)
        assert result.is_next
        assert str(result) == "ESNext"

    def test_defaults_to_today(self):
        assert dialect_version_for(0, None, TODAY) == DialectVersion.yearly(2024)


class TestAllDialectVersions:
    """Full ordered dialect list."""

    def test_runs_from_legacy_to_next(self):
        versions = all_dialect_versions(TODAY)
        assert versions[0] == DialectVersion.legacy()
        assert versions[1] == DialectVersion.es5()
        assert versions[2] == DialectVersion.yearly(2015)
        assert versions[-2] == DialectVersion.yearly(2024)
        assert versions[-1].is_next

    def test_is_sorted_without_duplicates(self):
        versions = all_dialect_versions(TODAY)
        assert versions == sorted(set(versions))


class TestDialectVersionParse:
    """Parsing dialect tokens."""

    @pytest.mark.parametrize("token,expected", [
        ("ESNext", DialectVersion.next()),
        ("es5", DialectVersion.es5()),
        ("ES3", DialectVersion.legacy()),
        ("es6", DialectVersion.yearly(2015)),
        ("ES2021", DialectVersion.yearly(2021)),
    ])
    def test_known_tokens(self, token, expected):
        assert DialectVersion.parse(token) == expected

    def test_unknown_token_raises(self):
        with pytest.raises(ValueError):
            DialectVersion.parse("ES21")

    def test_ordering_and_slug(self):
        assert DialectVersion.legacy() < DialectVersion.es5() < DialectVersion.yearly(2015) < DialectVersion.next()
        assert DialectVersion.yearly(2022).slug == "es2022"
