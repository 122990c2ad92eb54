"""VersionCatalog: release lifecycle and dialect compatibility queries.

The catalog owns the fetched release table through an explicit
SingleFlightCache. Nothing is fetched until the first query; the table is
then read-only for the rest of the invocation.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from constants import Constants

from .cache import SingleFlightCache
from .dialects import all_dialect_versions, dialect_version_for
from .models import DialectVersion, RuntimeRelease
from .schedule import fetch_release_schedule
from .versions import compare_versions, major_version, satisfies, sort_versions

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Sequence[RuntimeRelease]]


class VersionCatalog:
    """Point and range queries over runtime releases and dialect versions."""

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        cache: Optional[SingleFlightCache] = None,
        today: Optional[date] = None,
    ):
        """Initialize the catalog.

        Args:
            fetcher: Callable returning the release schedule. Defaults to the
                network fetch of Constants.RELEASE_SCHEDULE_URL.
            cache: Cache holding the release table; a fresh one by default.
            today: Evaluation date for lifecycle predicates.
        """
        self._fetcher: Fetcher = fetcher or fetch_release_schedule
        self._cache: SingleFlightCache = cache or SingleFlightCache()
        self.today = today or date.today()

    # ---------- release table ----------

    def _table(self) -> Dict[str, RuntimeRelease]:
        def _load() -> Dict[str, RuntimeRelease]:
            releases = self._fetcher()
            return {r.version: r for r in releases}
        return self._cache.get_or_load(_load)

    def releases(self) -> List[RuntimeRelease]:
        """All known releases, ascending by version."""
        table = self._table()
        return [table[v] for v in sort_versions(table)]

    def versions(self) -> List[str]:
        return [r.version for r in self.releases()]

    def release(self, version) -> Optional[RuntimeRelease]:
        """Release metadata for a version (any precision), or None."""
        table = self._table()
        key = str(version)
        if key in table:
            return table[key]
        return table.get(major_version(key) or "")

    def releases_since(self, cutoff: date) -> List[RuntimeRelease]:
        """Releases that started on or after the cutoff date."""
        return [r for r in self.releases() if r.start >= cutoff]

    # ---------- lifecycle predicates ----------

    def _window(self, start: Optional[date], end: Optional[date]) -> bool:
        if start is None or end is None:
            return False
        return start <= self.today <= end

    def is_born(self, version) -> bool:
        meta = self.release(version)
        return bool(meta) and meta.start <= self.today

    def is_maintained(self, version) -> bool:
        """Current, active or maintenance."""
        meta = self.release(version)
        return bool(meta) and self._window(meta.start, meta.end)

    def is_lts(self, version) -> bool:
        """Is or was the version an LTS line at some point."""
        meta = self.release(version)
        return bool(meta) and meta.lts is not None

    def is_active(self, version) -> bool:
        """Active LTS: between the LTS date and maintenance (or end)."""
        meta = self.release(version)
        return bool(meta) and self._window(meta.lts, meta.maintenance or meta.end)

    def is_current(self, version) -> bool:
        meta = self.release(version)
        return bool(meta) and self._window(meta.start, meta.lts or meta.maintenance or meta.end)

    def is_active_or_current(self, version) -> bool:
        """Not yet in maintenance and not end-of-life."""
        meta = self.release(version)
        return bool(meta) and self._window(meta.start, meta.maintenance or meta.end)

    def is_maintenance(self, version) -> bool:
        meta = self.release(version)
        return bool(meta) and self._window(meta.maintenance, meta.end)

    @staticmethod
    def is_esm(version) -> bool:
        """Does the version natively support import-style modules."""
        return compare_versions(version, Constants.ESM_MINIMUM_NODE_VERSION) >= 0

    # ---------- filtering ----------

    def filter_versions(
        self,
        versions: Optional[Iterable[str]] = None,
        *,
        gte: Optional[str] = None,
        lte: Optional[str] = None,
        within: Optional[Tuple[str, str]] = None,
        these: Optional[Iterable[str]] = None,
        born: bool = True,
        maintained: bool = False,
        lts: bool = False,
        active: bool = False,
        current: bool = False,
        active_or_current: bool = False,
        maintenance: bool = False,
        esm: bool = False,
        satisfies_range: Optional[str] = None,
    ) -> List[str]:
        """Filter versions (all known versions by default), ascending."""
        result = sort_versions(versions if versions is not None else self.versions())
        if gte is not None:
            result = [v for v in result if compare_versions(v, gte) >= 0]
        if lte is not None:
            result = [v for v in result if compare_versions(v, lte) <= 0]
        if within is not None:
            lesser, greater = within
            result = [
                v for v in result
                if compare_versions(v, lesser) >= 0 and compare_versions(v, greater) <= 0
            ]
        if these is not None:
            wanted = list(these)
            result = [v for v in result if any(compare_versions(v, s) == 0 for s in wanted)]
        if born:
            result = [v for v in result if self.is_born(v)]
        if maintained:
            result = [v for v in result if self.is_maintained(v)]
        if lts:
            result = [v for v in result if self.is_lts(v)]
        if active:
            result = [v for v in result if self.is_active(v)]
        if current:
            result = [v for v in result if self.is_current(v)]
        if active_or_current:
            result = [v for v in result if self.is_active_or_current(v)]
        if maintenance:
            result = [v for v in result if self.is_maintenance(v)]
        if esm:
            result = [v for v in result if self.is_esm(v)]
        if satisfies_range:
            result = [v for v in result if satisfies(v, satisfies_range)]
        return result

    def latest_current(self) -> Optional[str]:
        matches = self.filter_versions(current=True)
        return matches[-1] if matches else None

    def latest_active(self) -> Optional[str]:
        matches = self.filter_versions(active=True)
        return matches[-1] if matches else None

    def latest_maintenance(self) -> Optional[str]:
        matches = self.filter_versions(maintenance=True)
        return matches[-1] if matches else None

    def minimum_lts_version(self) -> Optional[str]:
        """Oldest release whose LTS date has already passed."""
        for release in self.releases():
            if release.lts and release.lts <= self.today:
                return release.version
        return None

    def maximum_lts_version(self) -> Optional[str]:
        """Newest release whose LTS date has already passed."""
        for release in reversed(self.releases()):
            if release.lts and release.lts <= self.today:
                return release.version
        return None

    # ---------- dialects ----------

    def dialect_version_for(self, offset_years: int = 0, reference_date: Optional[date] = None) -> DialectVersion:
        return dialect_version_for(offset_years, reference_date, self.today)

    def all_dialect_versions(self) -> List[DialectVersion]:
        return all_dialect_versions(self.today)

    def dialect_versions_for_runtime_version(self, version) -> List[DialectVersion]:
        """Dialect current at the version's release date and the one before it.

        Unknown versions yield an empty list.
        """
        meta = self.release(version)
        if meta is None:
            logger.debug("No release metadata for runtime version %s", version)
            return []
        result = []
        for offset in (0, -1):
            dialect = self.dialect_version_for(offset, meta.start)
            if dialect not in result:
                result.append(dialect)
        return sorted(result, reverse=True)

    def compatible_dialect_versions_for_runtime_versions(self, versions: Iterable[str]) -> List[DialectVersion]:
        """Union of dialect versions executable by each runtime version, newest first."""
        result: List[DialectVersion] = []
        for version in sort_versions(versions, reverse=True):
            for dialect in self.dialect_versions_for_runtime_version(version):
                if dialect not in result:
                    result.append(dialect)
        return sorted(result, reverse=True)
