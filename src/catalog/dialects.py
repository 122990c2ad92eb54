"""Dialect version arithmetic.

Yearly dialect versions become current in their ratification month
(June) of their ratification year. ES5 was ratified December 2009 and
everything before that is the legacy ES3 sentinel. Points in time past
`today` map to the next, not yet ratified, dialect.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from constants import Constants

from .models import DialectVersion


def dialect_version_for(
    offset_years: int = 0,
    reference_date: Optional[date] = None,
    today: Optional[date] = None,
) -> DialectVersion:
    """Return the dialect current `offset_years` away from `reference_date`.

    Args:
        offset_years: Whole years to move from the reference date (may be negative).
        reference_date: Point in time to evaluate; defaults to `today`.
        today: The evaluation date that separates ratified from unratified.

    Returns:
        DialectVersion current at the shifted point in time.
    """
    today = today or date.today()
    reference = reference_date or today
    year = reference.year + offset_years
    month = reference.month
    point = (year, month)

    if point > (today.year, today.month):
        return DialectVersion.next()
    if point >= (Constants.DIALECT_FIRST_YEARLY, Constants.DIALECT_RATIFICATION_MONTH):
        if month >= Constants.DIALECT_RATIFICATION_MONTH:
            return DialectVersion.yearly(year)
        return DialectVersion.yearly(year - 1)
    if point >= Constants.DIALECT_ES5_RATIFIED:
        return DialectVersion.es5()
    return DialectVersion.legacy()


def all_dialect_versions(today: Optional[date] = None) -> List[DialectVersion]:
    """Every dialect version from the legacy sentinel up to the next unratified one."""
    today = today or date.today()
    versions = []
    offset = 1
    while True:
        version = dialect_version_for(offset, today, today)
        if version not in versions:
            versions.append(version)
        if version.is_legacy:
            break
        offset -= 1
    return sorted(versions)
