"""Tests for project answers and CLI configuration overrides."""

import argparse
import json

import pytest

from catalog.models import DialectVersion
from cli_config import (
    ProjectAnswers,
    apply_cli_overrides,
    collect_overrides,
    load_config_file,
)
from constants import Constants
from editions.models import Compiler, ModuleSystem


class TestLoadConfigFile:
    """YAML and JSON config loading."""

    def test_yaml_section(self, tmp_path):
        path = tmp_path / "editioner.yml"
        path.write_text("editioner:\n  language: typescript\n  serial: true\n", encoding="utf-8")
        assert load_config_file(str(path)) == {"language": "typescript", "serial": True}

    def test_json_whole_mapping(self, tmp_path):
        path = tmp_path / "editioner.json"
        path.write_text(json.dumps({"compiler": "babel"}), encoding="utf-8")
        assert load_config_file(str(path)) == {"compiler": "babel"}

    def test_default_file_absent(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_config_file(None) == {}

    def test_default_file_present(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / Constants.CONFIG_FILE).write_text("browsers: defaults\n", encoding="utf-8")
        assert load_config_file(None) == {"browsers": "defaults"}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        assert load_config_file(str(path)) == {}

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config_file(str(tmp_path / "missing.yml"))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config_file(str(path))


class TestCollectOverrides:
    """KEY=VALUE pairs become a nested mapping of typed values."""

    def test_values_are_coerced(self):
        overrides = collect_overrides([
            "serial=true",
            "minimum_support=14",
            "module_systems=[import, require]",
            "entries.test=spec",
        ])
        assert overrides == {
            "serial": True,
            "minimum_support": 14,
            "module_systems": ["import", "require"],
            "entries": {"test": "spec"},
        }

    def test_malformed_pairs_ignored(self):
        assert collect_overrides(["novalue", "=x", None]) == {}


class TestProjectAnswers:
    """Answers fall back to manifest and catalog defaults."""

    def test_catalog_defaults(self, catalog):
        answers = ProjectAnswers.from_sources({}, {}, {"name": "demo"}, catalog)
        assert answers.minimum_support == "4"
        assert answers.maximum_support == "22"
        assert answers.minimum_test == "4"
        assert answers.maximum_test == "22"
        assert answers.compiler is None
        assert answers.module_systems == []
        assert answers.has_version_ranges()

    def test_manifest_engines_floor(self, catalog):
        manifest = {"name": "demo", "engines": {"node": ">=14.17"}}
        answers = ProjectAnswers.from_sources({}, {}, manifest, catalog)
        assert answers.minimum_support == "14"

    def test_typescript_defaults(self, catalog):
        answers = ProjectAnswers.from_sources({"language": "TypeScript"}, {}, {}, catalog)
        assert answers.language == "typescript"
        assert answers.compiler is Compiler.TYPESCRIPT
        assert answers.module_systems == [ModuleSystem.IMPORT, ModuleSystem.REQUIRE]
        assert answers.emit_types is True

    def test_overrides_win_over_config(self, catalog):
        config = {"compiler": "typescript", "maximum_test": 20, "entries": {"index": "main", "test": "spec"}}
        overrides = {"compiler": "babel", "entries": {"test": "check"}}
        answers = ProjectAnswers.from_sources(config, overrides, {}, catalog)
        assert answers.compiler is Compiler.BABEL
        assert answers.maximum_test == "20"
        assert answers.index_entry == "main"
        assert answers.test_entry == "check"

    def test_null_override_restores_default(self, catalog):
        answers = ProjectAnswers.from_sources({"minimum_support": 16}, {"minimum_support": None}, {}, catalog)
        assert answers.minimum_support == "4"

    def test_serial_projects(self, catalog):
        answers = ProjectAnswers.from_sources({}, {}, {"name": Constants.SERIAL_PROJECTS[0]}, catalog)
        assert answers.serial is True

    def test_unknown_language(self, catalog):
        with pytest.raises(ValueError):
            ProjectAnswers.from_sources({"language": "cobol"}, {}, {}, catalog)

    def test_unknown_compiler(self, catalog):
        with pytest.raises(ValueError):
            ProjectAnswers.from_sources({"compiler": "closure"}, {}, {}, catalog)

    def test_plan_request(self, catalog):
        answers = ProjectAnswers.from_sources(
            {"compiler": "babel", "module_systems": "require", "dialect_versions": ["ES2019"]},
            {},
            {},
            catalog,
        )
        request = answers.plan_request(["18", "20"])
        assert request.compiler is Compiler.BABEL
        assert request.module_systems == {ModuleSystem.REQUIRE}
        assert request.runtime_versions == ["18", "20"]
        assert request.dialect_versions == [DialectVersion.parse("ES2019")]


class TestApplyCliOverrides:
    """CLI tunables are applied to Constants."""

    @pytest.fixture(autouse=True)
    def _restore_constants(self, monkeypatch):
        for name in ("RELEASE_SCHEDULE_URL", "RESOLVER_MAX_CYCLES", "PROBE_TIMEOUT_SEC", "ENGINES_POLICY"):
            monkeypatch.setattr(Constants, name, getattr(Constants, name))

    @staticmethod
    def _args(**kwargs):
        values = {"SCHEDULE_URL": None, "MAX_CYCLES": None, "PROBE_TIMEOUT": None, "ENGINES_POLICY": None}
        values.update(kwargs)
        return argparse.Namespace(**values)

    def test_applies_values(self):
        apply_cli_overrides(self._args(
            SCHEDULE_URL="http://example.test/schedule.json",
            MAX_CYCLES=2,
            PROBE_TIMEOUT=30,
            ENGINES_POLICY="floor",
        ))
        assert Constants.RELEASE_SCHEDULE_URL == "http://example.test/schedule.json"
        assert Constants.RESOLVER_MAX_CYCLES == 2
        assert Constants.PROBE_TIMEOUT_SEC == 30.0
        assert Constants.ENGINES_POLICY == "floor"

    def test_zero_timeout_disables(self):
        apply_cli_overrides(self._args(PROBE_TIMEOUT=0))
        assert Constants.PROBE_TIMEOUT_SEC is None

    def test_rejects_non_positive_cycles(self):
        with pytest.raises(ValueError):
            apply_cli_overrides(self._args(MAX_CYCLES=0))

    def test_rejects_negative_timeout(self):
        with pytest.raises(ValueError):
            apply_cli_overrides(self._args(PROBE_TIMEOUT=-1))
