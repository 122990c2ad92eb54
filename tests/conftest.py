"""Shared fakes: release schedule, runtime probe and manifest store."""

from datetime import date
from typing import Dict, Iterable, List, Optional, Set

import pytest

from catalog.models import DialectVersion
from catalog.schedule import parse_release_schedule
from catalog.service import VersionCatalog
from catalog.versions import major_version
from editions.models import Compiler, Edition, EditionEngines, EditionTargets, ModuleSystem
from resolver.probe import ProbeResult

TODAY = date(2024, 6, 1)

SCHEDULE = {
    "v0.10": {"start": "2013-03-11", "end": "2016-10-31"},
    "v4": {"start": "2015-09-08", "lts": "2015-10-12", "maintenance": "2017-04-01",
           "end": "2018-04-30", "codename": "Argon"},
    "v12": {"start": "2019-04-23", "lts": "2019-10-21", "maintenance": "2020-11-30",
            "end": "2022-04-30", "codename": "Erbium"},
    "v14": {"start": "2020-04-21", "lts": "2020-10-27", "maintenance": "2021-10-19",
            "end": "2023-04-30", "codename": "Fermium"},
    "v16": {"start": "2021-04-20", "lts": "2021-10-26", "maintenance": "2022-10-18",
            "end": "2023-09-11", "codename": "Gallium"},
    "v18": {"start": "2022-04-19", "lts": "2022-10-25", "maintenance": "2023-10-18",
            "end": "2025-04-30", "codename": "Hydrogen"},
    "v20": {"start": "2023-04-18", "lts": "2023-10-24", "maintenance": "2024-10-22",
            "end": "2026-04-30", "codename": "Iron"},
    "v22": {"start": "2024-04-24", "lts": "2024-10-29", "maintenance": "2025-10-21",
            "end": "2027-04-30", "codename": "Jod"},
    "v23": {"start": "2024-10-16", "end": "2025-06-01"},
    "v24": {"start": "2025-04-22"},
}


class CountingFetcher:
    """Release schedule fetcher that counts its calls."""

    def __init__(self, schedule=None):
        self.schedule = schedule if schedule is not None else SCHEDULE
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return parse_release_schedule(self.schedule)


class StubDialectCatalog:
    """Catalog stand-in mapping each runtime version to exactly one dialect."""

    def __init__(self, mapping: Dict[str, str]):
        self.mapping = {k: DialectVersion.parse(v) for k, v in mapping.items()}

    @staticmethod
    def is_esm(version) -> bool:
        return VersionCatalog.is_esm(version)

    def compatible_dialect_versions_for_runtime_versions(self, versions: Iterable[str]) -> List[DialectVersion]:
        result = {self.mapping[v] for v in versions if v in self.mapping}
        return sorted(result, reverse=True)


class FakeProbe:
    """Scripted RuntimeProbe.

    `passes` maps a key to the versions that pass; a command matches a key
    when it runs a file under `./<key>/` or equals the key. Versions in
    `install_failures` are reported unavailable.
    """

    def __init__(self, passes: Dict[str, Iterable[str]], install_failures: Optional[Set[str]] = None):
        self.passes = {k: set(v) for k, v in passes.items()}
        self.install_failures = set(install_failures or ())
        self.calls: List[tuple] = []
        self.serial_flags: List[bool] = []

    def _passing(self, command: str) -> Set[str]:
        for key, versions in self.passes.items():
            if command == key or f"./{key}/" in command:
                return versions
        return set()

    async def install(self, version: str) -> None:
        return None

    async def run(self, command, versions, serial=False) -> ProbeResult:
        self.calls.append((command, tuple(versions)))
        self.serial_flags.append(serial)
        passing = self._passing(command)
        result = ProbeResult()
        for version in versions:
            if version in self.install_failures:
                result.unavailable.append(version)
                result.diagnostics.append(f"Failed to install runtime version {version}")
            elif major_version(version) in passing:
                result.passed.append(version)
            else:
                result.failed.append(version)
        return result


class FakeManifestStore:
    """Manifest collaborator that records every patch it is given."""

    def __init__(self, manifest=None):
        self.manifest = manifest or {}
        self.patches = []

    def read_manifest(self):
        return dict(self.manifest)

    def write_manifest(self, patch):
        self.patches.append(patch)


def make_edition(directory, target=None, module_system=ModuleSystem.REQUIRE, dialect=None):
    """A compiled node-facing edition with a test entry."""
    dialect_version = DialectVersion.parse(dialect) if dialect else None
    tags = {"compiled", "javascript", module_system.value}
    if dialect_version:
        tags.add(dialect_version.slug)
    return Edition(
        directory=directory,
        compiler=Compiler.BABEL,
        targets=EditionTargets(runtime_version=target, dialect_version=dialect_version),
        tags=tags,
        engines=EditionEngines(node=True, browsers=False),
        entries={"index": "index.js", "test": "test.js"},
    )


def make_source(language="typescript", node=False, module_system=ModuleSystem.IMPORT):
    return Edition(
        directory="source",
        compiler=None,
        tags={language, "source", module_system.value},
        engines=EditionEngines(node=node, browsers=False),
        entries={"index": "index.ts" if language == "typescript" else "index.js",
                 "test": "test.ts" if language == "typescript" else "test.js"},
    )


@pytest.fixture
def fetcher():
    return CountingFetcher()


@pytest.fixture
def catalog(fetcher):
    return VersionCatalog(fetcher=fetcher, today=TODAY)
