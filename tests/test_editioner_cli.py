"""CLI tests for editioner.main."""

import asyncio
import json
from unittest.mock import patch

import pytest

import editioner
from catalog.service import VersionCatalog
from constants import ExitCodes
from errors import FetchFailure

from conftest import TODAY, CountingFetcher, FakeProbe


def _manifest(tmp_path, data):
    path = tmp_path / "package.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def _catalog():
    return VersionCatalog(fetcher=CountingFetcher(), today=TODAY)


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


class TestPlanOnly:
    """--plan-only prints the planned editions."""

    def test_prints_plan(self, tmp_path, capsys):
        manifest = _manifest(tmp_path, {"name": "demo", "engines": {"node": ">=14"}})
        with patch("editioner.VersionCatalog", _catalog):
            with pytest.raises(SystemExit) as exc:
                editioner.main(["-m", manifest, "--plan-only", "--set", "compiler=babel"])
        assert exc.value.code == ExitCodes.SUCCESS.value
        plan = json.loads(capsys.readouterr().out)
        directories = [e["directory"] for e in plan]
        assert directories[0] == "source"
        assert any(d.startswith("edition-") and d.endswith("-esm") for d in directories)
        assert any(d.startswith("edition-") and not d.endswith("-esm") for d in directories)


    def test_release_table_loaded_outside_event_loop(self, tmp_path, capsys):
        manifest = _manifest(tmp_path, {"name": "demo"})
        loop_states = []

        def _fetch():
            try:
                asyncio.get_running_loop()
                loop_states.append(True)
            except RuntimeError:
                loop_states.append(False)
            return CountingFetcher()()

        with patch("editioner.VersionCatalog", lambda: VersionCatalog(fetcher=_fetch, today=TODAY)):
            with pytest.raises(SystemExit) as exc:
                editioner.main([
                    "-m", manifest, "--plan-only",
                    "--set", "minimum_support=16", "--set", "maximum_support=20",
                    "--set", "minimum_test=16", "--set", "maximum_test=20",
                ])
        assert exc.value.code == ExitCodes.SUCCESS.value
        assert loop_states == [False]
        assert json.loads(capsys.readouterr().out)[0]["directory"] == "source"


class TestResolve:
    """A full run probes editions and writes the manifest."""

    def test_source_only_project(self, tmp_path, capsys):
        manifest = _manifest(tmp_path, {"name": "demo", "engines": {"node": ">=14"}})
        probe = FakeProbe({"source": {"14", "16", "18", "20", "22"}})

        async def _no_compile(editions):
            return None

        with patch("editioner.VersionCatalog", _catalog), \
                patch("editioner.SubprocessRuntimeProbe", lambda **kwargs: probe), \
                patch("editioner.make_compiler", lambda pm, cwd: _no_compile):
            with pytest.raises(SystemExit) as exc:
                editioner.main(["-m", manifest])
        assert exc.value.code == ExitCodes.SUCCESS.value
        output = json.loads(capsys.readouterr().out)
        assert output == {
            "engines": {"node": "14 || 16 || 18 || 20 || 22"},
            "editions": ["source"],
            "unavailable": [],
        }
        written = json.loads((tmp_path / "package.json").read_text(encoding="utf-8"))
        assert written["engines"] == {"node": "14 || 16 || 18 || 20 || 22"}
        assert [e["directory"] for e in written["editions"]] == ["source"]
        assert probe.calls[0][0] == "node ./source/test.js"

    def test_coverage_gap_exit_code(self, tmp_path):
        manifest = _manifest(tmp_path, {"name": "demo", "engines": {"node": ">=14"}})
        probe = FakeProbe({"source": {"20", "22"}})

        async def _no_compile(editions):
            return None

        with patch("editioner.VersionCatalog", _catalog), \
                patch("editioner.SubprocessRuntimeProbe", lambda **kwargs: probe), \
                patch("editioner.make_compiler", lambda pm, cwd: _no_compile):
            with pytest.raises(SystemExit) as exc:
                editioner.main(["-m", manifest])
        assert exc.value.code == ExitCodes.RESOLUTION_ERROR.value


class TestExitCodes:
    """Failures map onto exit codes."""

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            editioner.main(["-m", str(tmp_path / "missing.json"), "--plan-only"])
        assert exc.value.code == ExitCodes.FILE_ERROR.value

    def test_invalid_max_cycles(self, tmp_path):
        manifest = _manifest(tmp_path, {"name": "demo"})
        with pytest.raises(SystemExit) as exc:
            editioner.main(["-m", manifest, "--max-cycles", "0"])
        assert exc.value.code == ExitCodes.CONFIG_ERROR.value

    def test_invalid_config(self, tmp_path):
        manifest = _manifest(tmp_path, {"name": "demo"})
        config = tmp_path / "bad.yml"
        config.write_text("- not\n- a mapping\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            editioner.main(["-m", manifest, "-c", str(config), "--plan-only"])
        assert exc.value.code == ExitCodes.CONFIG_ERROR.value

    def test_fetch_failure(self, tmp_path):
        manifest = _manifest(tmp_path, {"name": "demo"})

        def _failing():
            raise FetchFailure("http://example.test/schedule.json", "connection refused")

        with patch("editioner.VersionCatalog", lambda: VersionCatalog(fetcher=_failing, today=TODAY)):
            with pytest.raises(SystemExit) as exc:
                editioner.main(["-m", manifest, "--plan-only"])
        assert exc.value.code == ExitCodes.CONNECTION_ERROR.value
