"""Tests for EditionPlanner."""

import pytest

from catalog.models import DialectVersion
from constants import Languages
from editions.models import Compiler, ModuleSystem
from editions.planner import EditionPlanner, PlanRequest
from editions.scripts import babel_env

from conftest import StubDialectCatalog

SCENARIO_A = {"14": "ES2019", "16": "ES2020", "18": "ES2020", "20": "ES2021"}


def _request(**kwargs):
    defaults = dict(
        language=Languages.ESNEXT.value,
        compiler=Compiler.BABEL,
        module_systems={ModuleSystem.IMPORT, ModuleSystem.REQUIRE},
        runtime_versions=["14", "16", "18", "20"],
    )
    defaults.update(kwargs)
    return PlanRequest(**defaults)


class TestDialectEditions:
    """One edition per module system and dialect."""

    def test_three_import_and_three_require_editions(self):
        """Runtime targets mapping to three dialects give three editions per module system."""
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request())
        directories = [e.directory for e in editions]
        assert directories == [
            "source",
            "edition-es2021-esm",
            "edition-es2020-esm",
            "edition-es2019-esm",
            "edition-es2021",
            "edition-es2020",
            "edition-es2019",
        ]

    def test_newest_target_first(self):
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request())
        requires = [e for e in editions if e.module_system is ModuleSystem.REQUIRE and not e.is_source]
        assert [e.target_runtime_version for e in requires] == ["20", "18", "14"]

    def test_shared_dialect_keeps_newest_target(self):
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request())
        es2020 = [e for e in editions if e.directory == "edition-es2020"][0]
        assert es2020.targets.runtime_version == "18"
        assert es2020.targets.dialect_version == DialectVersion.yearly(2020)
        assert {"compiled", "javascript", "es2020", "require"} <= es2020.tags

    def test_no_duplicate_module_system_dialect_pairs(self, catalog):
        editions = EditionPlanner(catalog).plan(_request(runtime_versions=["14", "16", "18", "20", "22"]))
        pairs = [
            (e.module_system, e.targets.dialect_version)
            for e in editions if not e.is_source
        ]
        assert len(pairs) == len(set(pairs))

    def test_real_catalog_current_and_prior(self, catalog):
        editions = EditionPlanner(catalog).plan(_request(
            module_systems={ModuleSystem.REQUIRE}, runtime_versions=["18", "20"],
        ))
        assert [e.directory for e in editions] == [
            "source", "edition-es2022", "edition-es2021", "edition-es2020",
        ]
        assert [e.target_runtime_version for e in editions[1:]] == ["20", "20", "18"]

    def test_import_editions_skip_non_esm_versions(self):
        catalog = StubDialectCatalog({"12": "ES2018", "14": "ES2019"})
        editions = EditionPlanner(catalog).plan(_request(runtime_versions=["12", "14"]))
        imports = [e.directory for e in editions if e.module_system is ModuleSystem.IMPORT and not e.is_source]
        requires = [e.directory for e in editions if e.module_system is ModuleSystem.REQUIRE and not e.is_source]
        assert imports == ["edition-es2019-esm"]
        assert requires == ["edition-es2019", "edition-es2018"]

    def test_allowed_dialects_filter(self):
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request(
            module_systems={ModuleSystem.REQUIRE},
            dialect_versions=[DialectVersion.yearly(2019)],
        ))
        assert [e.directory for e in editions] == ["source", "edition-es2019"]

    def test_empty_dialect_list_is_not_an_error(self):
        editions = EditionPlanner(StubDialectCatalog({})).plan(_request())
        assert [e.directory for e in editions] == ["source"]


class TestOtherEditions:
    """Source, browser, stripped and types editions."""

    def test_source_edition_first_and_tagged(self):
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request(
            source_module_system=ModuleSystem.REQUIRE,
        ))
        source = editions[0]
        assert source.is_source
        assert source.directory == "source"
        assert {"esnext", "javascript", "source", "require"} <= source.tags
        assert source.engines.node is True
        assert source.entries["index"] == "index.js"

    def test_browser_edition(self):
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request(
            browser_compiler=Compiler.BABEL, browsers="last 2 versions", browser_entry="browser",
        ))
        assert editions[1].directory == "edition-browsers"
        assert editions[1].engines.browsers == "last 2 versions"
        assert editions[1].engines.node is False
        assert editions[0].engines.browsers is False
        assert "[last 2 versions]" in editions[1].description

    def test_typescript_types_edition_last(self):
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request(
            language=Languages.TYPESCRIPT.value,
            compiler=Compiler.TYPESCRIPT,
            module_systems={ModuleSystem.IMPORT},
            emit_types=True,
        ))
        source = editions[0]
        assert source.entries["index"] == "index.ts"
        assert source.engines.node is False
        types = editions[-1]
        assert types.directory == "compiled-types"
        assert types.compiler is Compiler.TYPES
        assert "--emitDeclarationOnly" in types.scripts["our:compile:compiled-types"]

    def test_strip_types_single_esnext_edition(self):
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request(
            language=Languages.TYPESCRIPT.value, compiler=Compiler.STRIP_TYPES,
        ))
        assert [e.directory for e in editions] == ["source", "edition-esnext-esm"]
        assert editions[1].target_runtime_version == "20"

    def test_json_source(self):
        editions = EditionPlanner(StubDialectCatalog({})).plan(PlanRequest(language=Languages.JSON.value))
        assert editions[0].entries == {"index": "index.json", "test": "test.js"}
        assert editions[0].engines.node is True
        assert editions[0].engines.browsers is True

    def test_unknown_language(self):
        with pytest.raises(ValueError):
            EditionPlanner(StubDialectCatalog({})).plan(PlanRequest(language="elm"))


class TestScriptsAndDescriptions:
    """Compile scripts and descriptions filled by the planner."""

    def test_babel_script(self):
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request())
        es2021 = [e for e in editions if e.directory == "edition-es2021"][0]
        assert es2021.scripts == {
            "our:compile:edition-es2021": "env BABEL_ENV=edition-es2021 babel --out-dir ./edition-es2021 ./source",
        }
        assert es2021.description == "ESNext compiled against ES2021 for Node.js with Require for modules"
        assert editions[0].scripts == {}
        assert editions[0].description == "ESNext source code with Import for modules"

    def test_typescript_script(self):
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request(
            language=Languages.TYPESCRIPT.value, compiler=Compiler.TYPESCRIPT,
            module_systems={ModuleSystem.IMPORT},
        ))
        script = editions[1].scripts["our:compile:edition-es2021-esm"]
        assert script.startswith("tsc --module ESNext --target ES2021 --outDir ./edition-es2021-esm")

    def test_babel_env(self):
        editions = EditionPlanner(StubDialectCatalog(SCENARIO_A)).plan(_request())
        esm = editions[1]
        env = babel_env(esm, Languages.ESNEXT.value)
        assert env == {"presets": [["@babel/preset-env", {"targets": {"node": "20"}, "modules": False}]]}
