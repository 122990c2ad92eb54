"""EditionPlanner: static enumeration of the candidate edition set."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set

from catalog.models import DialectVersion
from catalog.service import VersionCatalog
from catalog.versions import sort_versions
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants, Languages

from .models import Compiler, Edition, EditionEngines, EditionTargets, ModuleSystem
from .scripts import compile_scripts, describe

logger = logging.getLogger(__name__)

DIALECT_COMPILERS = (Compiler.BABEL, Compiler.TYPESCRIPT)

_SOURCE_EXTENSIONS = {
    Languages.ESNEXT.value: "js",
    Languages.TYPESCRIPT.value: "ts",
    Languages.COFFEESCRIPT.value: "coffee",
    Languages.JSON.value: "json",
}


@dataclass
class PlanRequest:
    """Inputs to edition planning."""
    language: str = Languages.ESNEXT.value
    source_directory: str = Constants.DEFAULT_SOURCE_DIRECTORY
    source_module_system: ModuleSystem = ModuleSystem.IMPORT
    compiler: Optional[Compiler] = None
    browser_compiler: Optional[Compiler] = None
    module_systems: Set[ModuleSystem] = field(default_factory=set)
    runtime_versions: List[str] = field(default_factory=list)
    browsers: Optional[str] = None
    dialect_versions: Optional[List[DialectVersion]] = None
    emit_types: bool = False
    index_entry: str = "index"
    node_entry: Optional[str] = None
    browser_entry: Optional[str] = None
    test_entry: Optional[str] = "test"
    bin_entry: Optional[str] = None


class EditionPlanner:
    """Enumerates the candidate covering set of editions for a request."""

    def __init__(self, catalog: VersionCatalog):
        self.catalog = catalog

    def plan(self, request: PlanRequest) -> List[Edition]:
        """Plan editions: source, browser, dialect editions, then types.

        Dialect editions are ordered newest runtime target first, with at
        most one edition per (module system, dialect version).

        Raises:
            ValueError: if two planned editions share a directory.
        """
        logger.info("%s planning editions...", Constants.RESOLVE)
        editions = [self._source_edition(request)]

        if request.browser_compiler:
            editions.append(self._browser_edition(request))

        if request.compiler in DIALECT_COMPILERS:
            for module_system in self._ordered_module_systems(request.module_systems):
                editions.extend(self._dialect_editions(request, module_system))
        elif request.compiler is Compiler.STRIP_TYPES:
            editions.append(self._stripped_edition(request))

        if request.emit_types:
            editions.append(self._types_edition(request))

        seen: Set[str] = set()
        for edition in editions:
            if edition.directory in seen:
                raise ValueError(f"Two planned editions share the directory [{edition.directory}]")
            seen.add(edition.directory)
            edition.description = describe(edition, request.language, request.source_directory)
            edition.scripts = compile_scripts(edition, request.language, request.source_directory)

        logger.info(
            "%s planned editions: %s",
            Constants.RESOLVE,
            ", ".join(e.directory for e in editions),
        )
        return editions

    # ---------- helpers ----------

    @staticmethod
    def _ordered_module_systems(module_systems: Iterable[ModuleSystem]) -> List[ModuleSystem]:
        return [m for m in (ModuleSystem.IMPORT, ModuleSystem.REQUIRE) if m in set(module_systems)]

    @staticmethod
    def _entries(request: PlanRequest, extension: str, test_extension: Optional[str] = None) -> dict:
        test_extension = test_extension or extension
        entries = {"index": f"{request.index_entry}.{extension}"}
        if request.node_entry:
            entries["node"] = f"{request.node_entry}.{extension}"
        if request.browser_entry:
            entries["browser"] = f"{request.browser_entry}.{extension}"
        if request.test_entry:
            entries["test"] = f"{request.test_entry}.{test_extension}"
        if request.bin_entry:
            entries["bin"] = f"{request.bin_entry}.{extension}"
        return entries

    def _source_edition(self, request: PlanRequest) -> Edition:
        language = request.language
        extension = _SOURCE_EXTENSIONS.get(language)
        if extension is None:
            raise ValueError(f"Unsupported source language: {language}")
        tags = {language, "source"}
        if language == Languages.JSON.value:
            engines = EditionEngines(node=True, browsers=True)
            entries = self._entries(request, "json", "js")
        else:
            tags.add(request.source_module_system.value)
            if language == Languages.ESNEXT.value:
                tags.add("javascript")
                browsers = request.browsers if request.browsers and not request.browser_compiler else False
                engines = EditionEngines(node=bool(request.runtime_versions), browsers=browsers)
            else:
                engines = EditionEngines(node=False, browsers=False)
            entries = self._entries(request, extension)
        return Edition(
            directory=request.source_directory,
            compiler=None,
            tags=tags,
            engines=engines,
            entries=entries,
        )

    def _browser_edition(self, request: PlanRequest) -> Edition:
        browsers = request.browsers or Constants.DEFAULT_BROWSERS
        return Edition(
            directory=Constants.BROWSER_EDITION_DIRECTORY,
            compiler=request.browser_compiler,
            targets=EditionTargets(browsers=browsers),
            tags={"compiled", "javascript", ModuleSystem.IMPORT.value},
            engines=EditionEngines(node=False, browsers=browsers),
            entries=self._entries(request, "js"),
        )

    def _types_edition(self, request: PlanRequest) -> Edition:
        return Edition(
            directory=Constants.TYPES_EDITION_DIRECTORY,
            compiler=Compiler.TYPES,
            tags={"compiled", "types", ModuleSystem.IMPORT.value},
            engines=EditionEngines(node=False, browsers=False),
            entries={"index": f"{request.index_entry}.d.ts"},
        )

    def _stripped_edition(self, request: PlanRequest) -> Edition:
        newest = sort_versions(request.runtime_versions, reverse=True)
        dialect = DialectVersion.next()
        module_system = request.source_module_system
        directory = self._dialect_directory(dialect, module_system)
        return Edition(
            directory=directory,
            compiler=Compiler.STRIP_TYPES,
            targets=EditionTargets(runtime_version=newest[0] if newest else None, dialect_version=dialect),
            tags={"compiled", "javascript", dialect.slug, module_system.value},
            engines=EditionEngines(node=True, browsers=False),
            entries=self._entries(request, "js"),
        )

    @staticmethod
    def _dialect_directory(dialect: DialectVersion, module_system: ModuleSystem) -> str:
        directory = f"{Constants.COMPILED_EDITION_PREFIX}{dialect.slug}"
        if module_system is ModuleSystem.IMPORT:
            directory += Constants.IMPORT_EDITION_SUFFIX
        return directory

    def _runtime_versions_for(self, request: PlanRequest, module_system: ModuleSystem) -> List[str]:
        versions = sort_versions(request.runtime_versions, reverse=True)
        if module_system is ModuleSystem.IMPORT:
            versions = [v for v in versions if self.catalog.is_esm(v)]
        return versions

    def _dialect_editions(self, request: PlanRequest, module_system: ModuleSystem) -> List[Edition]:
        allowed: Optional[Sequence[DialectVersion]] = request.dialect_versions
        seen: Set[DialectVersion] = set()
        editions: List[Edition] = []
        for version in self._runtime_versions_for(request, module_system):
            for dialect in self.catalog.compatible_dialect_versions_for_runtime_versions([version]):
                if allowed is not None and dialect not in allowed:
                    continue
                if dialect in seen:
                    continue
                seen.add(dialect)
                editions.append(Edition(
                    directory=self._dialect_directory(dialect, module_system),
                    compiler=request.compiler,
                    targets=EditionTargets(runtime_version=version, dialect_version=dialect),
                    tags={"compiled", "javascript", dialect.slug, module_system.value},
                    engines=EditionEngines(node=True, browsers=False),
                    entries=self._entries(request, "js"),
                ))
        if not editions:
            logger.warning(
                "%s no %s editions planned: no targeted runtime version is compatible "
                "with an allowed dialect version",
                Constants.RESOLVE,
                module_system.value,
            )
        elif is_debug_enabled(logger):
            logger.debug(
                "Planned dialect editions",
                extra=extra_context(
                    event="plan",
                    component="planner",
                    action=module_system.value,
                    target=", ".join(e.directory for e in editions)
                )
            )
        return editions
