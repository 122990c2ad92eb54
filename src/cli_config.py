"""Project answers and CLI configuration overrides.

Answers are resolved in precedence order: `--set KEY=VALUE` overrides, then
the YAML/JSON config file, then defaults derived from the existing manifest
and the release catalog. CLI tunables (schedule URL, cycle bound, probe
timeout, engines policy) are applied to Constants with highest precedence.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import yaml

from catalog.models import DialectVersion
from catalog.service import VersionCatalog
from catalog.versions import major_version, range_floor
from constants import Constants, EnginesPolicy, Languages
from editions.models import Compiler, ModuleSystem
from editions.planner import PlanRequest
from manifest.package_json import deep_merge

logger = logging.getLogger(__name__)


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Load project answers from a YAML or JSON file.

    Args:
        path: Path to a .yml/.yaml/.json file. When None, the default
            Constants.CONFIG_FILE is used if it exists.

    Returns:
        The `editioner` section of the file, or the whole mapping.

    Raises:
        FileNotFoundError: if an explicitly given file does not exist.
        ValueError: if the file does not contain a mapping.
    """
    if not path:
        if not os.path.isfile(Constants.CONFIG_FILE):
            return {}
        path = Constants.CONFIG_FILE
    with open(path, "r", encoding="utf-8") as f:
        if path.lower().endswith(".json"):
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    logger.info("Loaded config from: %s", path)
    section = data.get("editioner", data)
    return section if isinstance(section, dict) else {}


def _coerce_value(text: str) -> Any:
    """Parse an override value as a YAML scalar ("true", "14", "[a, b]")."""
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def _apply_dot_path(dct: Dict[str, Any], dot_path: str, value: Any) -> None:
    parts = [p for p in dot_path.split(".") if p]
    cur = dct
    for key in parts[:-1]:
        if key not in cur or not isinstance(cur.get(key), dict):
            cur[key] = {}
        cur = cur[key]
    cur[parts[-1]] = value


def collect_overrides(pairs: Optional[Sequence[str]]) -> Dict[str, Any]:
    """Turn KEY=VALUE pairs into a nested mapping; malformed pairs are ignored."""
    overrides: Dict[str, Any] = {}
    for item in pairs or []:
        if not isinstance(item, str) or "=" not in item:
            logger.warning("Ignoring malformed override: %s", item)
            continue
        key, val = item.split("=", 1)
        key = key.strip()
        if not key:
            continue
        _apply_dot_path(overrides, key, _coerce_value(val.strip()))
    return overrides


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    return [s.strip() for s in str(value).split(",") if s.strip()]


@dataclass
class ProjectAnswers:
    """Resolved answers describing the project to edition."""
    name: str = ""
    language: str = Languages.ESNEXT.value
    source_directory: str = Constants.DEFAULT_SOURCE_DIRECTORY
    source_module: ModuleSystem = ModuleSystem.IMPORT
    compiler: Optional[Compiler] = None
    browser_compiler: Optional[Compiler] = None
    module_systems: List[ModuleSystem] = field(default_factory=list)
    browsers: Optional[str] = None
    dialect_versions: Optional[List[DialectVersion]] = None
    emit_types: bool = False
    index_entry: str = "index"
    node_entry: Optional[str] = None
    browser_entry: Optional[str] = None
    test_entry: Optional[str] = "test"
    bin_entry: Optional[str] = None
    bin_name: Optional[str] = None
    minimum_support: Optional[str] = None
    maximum_support: Optional[str] = None
    minimum_test: Optional[str] = None
    maximum_test: Optional[str] = None
    package_manager: str = "npm"
    test_template: Optional[str] = None
    serial: bool = False

    @classmethod
    def from_sources(
        cls,
        config: Dict[str, Any],
        overrides: Dict[str, Any],
        manifest: Dict[str, Any],
        catalog: VersionCatalog,
    ) -> "ProjectAnswers":
        """Build answers from config, overrides, manifest and catalog defaults.

        Raises:
            ValueError: on an unknown language, compiler, module system or
                dialect version.
        """
        merged: Dict[str, Any] = {}
        deep_merge(merged, config or {})
        deep_merge(merged, overrides or {})
        manifest = manifest or {}
        entries = merged.get("entries") or {}

        language = str(merged.get("language", Languages.ESNEXT.value)).lower()
        if language not in {lang.value for lang in Languages}:
            raise ValueError(f"Unknown language: {language}")

        def _compiler(key: str) -> Optional[Compiler]:
            value = merged.get(key)
            if value in (None, False, "", "none"):
                return None
            return Compiler(str(value).lower())

        compiler = _compiler("compiler")
        if compiler is None and language == Languages.TYPESCRIPT.value and "compiler" not in merged:
            compiler = Compiler.TYPESCRIPT

        source_module = ModuleSystem(str(merged.get("source_module", "import")).lower())
        module_systems = [ModuleSystem(str(m).lower()) for m in _as_list(merged.get("module_systems"))]
        if not module_systems and compiler is not None:
            module_systems = [ModuleSystem.IMPORT, ModuleSystem.REQUIRE]

        dialects = merged.get("dialect_versions")
        dialect_versions = (
            [DialectVersion.parse(d) for d in _as_list(dialects)] if dialects else None
        )

        engines = manifest.get("engines") if isinstance(manifest.get("engines"), dict) else {}
        minimum_support = merged.get("minimum_support")
        if minimum_support is None:
            minimum_support = range_floor(engines.get("node")) or catalog.minimum_lts_version()
        maximum_support = merged.get("maximum_support")
        if maximum_support is None:
            maximum_support = catalog.latest_current() or catalog.maximum_lts_version()
        minimum_test = merged.get("minimum_test", minimum_support)
        maximum_test = merged.get("maximum_test", maximum_support)

        name = str(merged.get("name") or manifest.get("name") or "")
        serial = bool(merged.get("serial", False)) or name in Constants.SERIAL_PROJECTS

        return cls(
            name=name,
            language=language,
            source_directory=str(merged.get("source_directory", Constants.DEFAULT_SOURCE_DIRECTORY)),
            source_module=source_module,
            compiler=compiler,
            browser_compiler=_compiler("browser_compiler"),
            module_systems=module_systems,
            browsers=merged.get("browsers"),
            dialect_versions=dialect_versions,
            emit_types=bool(merged.get("emit_types", language == Languages.TYPESCRIPT.value)),
            index_entry=str(entries.get("index", "index")),
            node_entry=entries.get("node"),
            browser_entry=entries.get("browser"),
            test_entry=entries.get("test", "test"),
            bin_entry=entries.get("bin"),
            bin_name=merged.get("bin_name"),
            minimum_support=major_version(minimum_support) if minimum_support else None,
            maximum_support=major_version(maximum_support) if maximum_support else None,
            minimum_test=major_version(minimum_test) if minimum_test else None,
            maximum_test=major_version(maximum_test) if maximum_test else None,
            package_manager=str(merged.get("package_manager", "npm")),
            test_template=merged.get("test_template"),
            serial=serial,
        )

    def has_version_ranges(self) -> bool:
        return all([self.minimum_test, self.maximum_test, self.minimum_support, self.maximum_support])

    def plan_request(self, runtime_versions: Sequence[str]) -> PlanRequest:
        return PlanRequest(
            language=self.language,
            source_directory=self.source_directory,
            source_module_system=self.source_module,
            compiler=self.compiler,
            browser_compiler=self.browser_compiler,
            module_systems=set(self.module_systems),
            runtime_versions=list(runtime_versions),
            browsers=self.browsers,
            dialect_versions=self.dialect_versions,
            emit_types=self.emit_types,
            index_entry=self.index_entry,
            node_entry=self.node_entry,
            browser_entry=self.browser_entry,
            test_entry=self.test_entry,
            bin_entry=self.bin_entry,
        )


def apply_cli_overrides(args) -> None:
    """Apply CLI tunables to Constants (CLI has highest precedence).

    Raises:
        ValueError: on a non-positive cycle bound or a negative timeout.
    """
    if getattr(args, "SCHEDULE_URL", None):
        Constants.RELEASE_SCHEDULE_URL = args.SCHEDULE_URL
    if getattr(args, "MAX_CYCLES", None) is not None:
        if int(args.MAX_CYCLES) < 1:
            raise ValueError("--max-cycles must be at least 1")
        Constants.RESOLVER_MAX_CYCLES = int(args.MAX_CYCLES)
    if getattr(args, "PROBE_TIMEOUT", None) is not None:
        if float(args.PROBE_TIMEOUT) < 0:
            raise ValueError("--probe-timeout must not be negative")
        Constants.PROBE_TIMEOUT_SEC = float(args.PROBE_TIMEOUT) or None
    if getattr(args, "ENGINES_POLICY", None):
        Constants.ENGINES_POLICY = EnginesPolicy(args.ENGINES_POLICY).value
