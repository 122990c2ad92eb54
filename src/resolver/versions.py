"""Tested and supported runtime version sets and engines range strings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from catalog.service import VersionCatalog
from catalog.versions import compare_versions, major_versions, sort_versions
from editions.models import ModuleSystem


def exact_range(versions: Iterable[str]) -> str:
    """Disjunction of major versions, ascending: "16 || 18 || 20"."""
    return " || ".join(major_versions(sort_versions(versions)))


def floor_range(version: str) -> str:
    return f">={version}"


@dataclass
class TargetVersions:
    """Runtime major versions to test against and to support."""
    tested: List[str] = field(default_factory=list)
    supported: List[str] = field(default_factory=list)
    esm_minimum: Optional[str] = None

    def __post_init__(self) -> None:
        self.tested = sort_versions(major_versions(self.tested))
        self.supported = sort_versions(major_versions(self.supported))

    @classmethod
    def from_ranges(
        cls,
        catalog: VersionCatalog,
        minimum_test: str,
        maximum_test: str,
        minimum_support: str,
        maximum_support: str,
    ) -> "TargetVersions":
        """Select known release lines within the test and support ranges."""
        tested = catalog.filter_versions(within=(minimum_test, maximum_test))
        supported = [
            v for v in tested
            if compare_versions(v, minimum_support) >= 0 and compare_versions(v, maximum_support) <= 0
        ]
        return cls(tested=tested, supported=supported)

    @property
    def unsupported(self) -> List[str]:
        """Tested versions that are outside the support range."""
        return [v for v in self.tested if v not in self.supported]

    @property
    def required(self) -> List[str]:
        """Versions that must pass on some kept edition: tested and supported."""
        return [v for v in self.tested if v in self.supported]

    def tested_for(self, module_system: Optional[ModuleSystem]) -> List[str]:
        """Tested versions an edition of the given module system can run on."""
        if module_system is ModuleSystem.IMPORT:
            return [v for v in self.tested if VersionCatalog.is_esm(v)]
        return list(self.tested)
