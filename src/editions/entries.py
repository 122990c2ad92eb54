"""EditionEntryWriter: materializes the chosen entrypoints into the manifest.

The writer computes a ManifestPatch from the finalized editions and hands it
to the manifest collaborator in a single write_manifest() call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from constants import Constants, Languages

from .models import Compiler, Edition, ModuleSystem
from .queries import EditionSnapshot
from .scripts import COMPILE_SCRIPT_PREFIX, babel_env

logger = logging.getLogger(__name__)

AUTOLOADER_MARKER = "requirePackage"
COMPILE_SCRIPT = "our:compile"


@dataclass
class ManifestPatch:
    """Changes to apply to the project manifest and its neighbouring files.

    `package` is deep-merged into the manifest, where a None value deletes
    the key. `type_markers` maps an edition directory to the package type
    written to `<directory>/package.json`. `files` maps a root-relative path
    to new contents; None removes a previously generated autoloader file.
    """
    package: Dict[str, Any] = field(default_factory=dict)
    type_markers: Dict[str, str] = field(default_factory=dict)
    files: Dict[str, Optional[str]] = field(default_factory=dict)
    executables: List[str] = field(default_factory=list)


def _autoloader(source_path: Optional[str], entry: Optional[str] = None, shebang: bool = False) -> str:
    lines = []
    if shebang:
        lines.append("#!/usr/bin/env node")
    lines.extend(["'use strict'", ""])
    if source_path:
        lines.append(f'/** @type {{typeof import("./{source_path}") }} */')
    arguments = "__dirname, require"
    if entry:
        arguments += f", '{entry}'"
    lines.append(f"module.exports = require('{Constants.AUTOLOADER_DEPENDENCY}').requirePackage({arguments})")
    lines.append("")
    return "\n".join(lines)


class EditionEntryWriter:
    """Builds and writes the manifest patch for a finalized edition set."""

    def __init__(
        self,
        manifest: Any,
        bin_name: Optional[str] = None,
        language: Optional[str] = None,
        package_manager: str = "npm",
    ):
        """Initialize the writer.

        Args:
            manifest: Collaborator exposing write_manifest(patch).
            bin_name: Executable name; when set, `bin` is written as a mapping.
            language: Source language; defaults to the source edition's tag.
            package_manager: Runs the per-edition scripts in `our:compile`.
        """
        self.manifest = manifest
        self.bin_name = bin_name
        self.language = language
        self.package_manager = package_manager

    def _bin(self, path: str) -> Union[str, Dict[str, str]]:
        if self.bin_name:
            return {self.bin_name: path}
        return path

    def build(self, editions: Sequence[Edition], engines_node: Optional[str]) -> ManifestPatch:
        """Compute the manifest patch without writing it."""
        snapshot = EditionSnapshot.capture(editions)
        source = snapshot.source
        node_edition = snapshot.node_edition
        patch = ManifestPatch()
        package = patch.package

        package["engines"] = {"node": engines_node or None}
        package["editions"] = [e.to_manifest() for e in snapshot.active]

        if snapshot.uses_autoloader:
            patch.files["index.js"] = _autoloader(source.entry_path("index"))
            package["main"] = "index.js"
            if node_edition.entries.get("test"):
                patch.files["test.js"] = _autoloader(
                    source.entry_path("test"), node_edition.entries["test"]
                )
            else:
                patch.files["test.js"] = None
            if node_edition.entries.get("bin"):
                patch.files["bin.js"] = _autoloader(
                    source.entry_path("bin"), node_edition.entries["bin"], shebang=True
                )
                package["bin"] = self._bin("bin.js")
            else:
                patch.files["bin.js"] = None
        else:
            for name in ("index.js", "test.js", "bin.js"):
                patch.files[name] = None
            if node_edition:
                package["main"] = node_edition.entry_path("index")
                bin_path = node_edition.entry_path("bin")
                package["bin"] = self._bin(bin_path) if bin_path else None
            else:
                package["main"] = None
                package["bin"] = None

        if node_edition and node_edition.entries.get("node"):
            package["node"] = node_edition.entry_path("node")
        else:
            package["node"] = None

        browser = snapshot.browser
        if browser:
            package["browser"] = browser.effective_entry_path
            package["module"] = package["browser"] if browser.module_system is ModuleSystem.IMPORT else None
        else:
            package["browser"] = None
            package["module"] = None

        package["types"] = f"./{snapshot.types.directory}/" if snapshot.types else None
        package["type"] = self._package_type(snapshot)
        package["scripts"] = self._scripts(editions)
        package["babel"] = self._babel(editions, self._language(source))
        patch.executables = self._executables(package.get("bin"))

        for edition in snapshot.active:
            if edition.is_source or edition.compiler is Compiler.TYPES:
                continue
            if edition.module_system is ModuleSystem.IMPORT:
                patch.type_markers[edition.directory] = "module"
            elif edition.module_system is ModuleSystem.REQUIRE:
                patch.type_markers[edition.directory] = "commonjs"
        return patch

    def write(self, editions: Sequence[Edition], engines_node: Optional[str]) -> ManifestPatch:
        """Build the patch and persist it with one write_manifest() call."""
        patch = self.build(editions, engines_node)
        self.manifest.write_manifest(patch)
        logger.info(
            "%s wrote entries for %d active editions (engines.node: %s)",
            Constants.RESOLVE,
            len(patch.package["editions"]),
            engines_node,
        )
        return patch

    # ---------- helpers ----------

    @staticmethod
    def _package_type(snapshot: EditionSnapshot) -> str:
        node_edition = snapshot.node_edition
        module_system = node_edition.module_system if node_edition else snapshot.source.module_system
        if module_system is ModuleSystem.IMPORT and not snapshot.uses_autoloader:
            return "module"
        return "commonjs"

    def _language(self, source: Edition) -> str:
        if self.language:
            return self.language
        for language in Languages:
            if language.value in source.tags:
                return language.value
        return Languages.ESNEXT.value

    @staticmethod
    def _babel(editions: Sequence[Edition], language: str) -> Optional[Dict[str, Any]]:
        """Per-edition babel env presets, selected at compile time by BABEL_ENV.

        Inactive babel editions have their env removed; with no babel
        editions at all the whole `babel` key is removed.
        """
        env: Dict[str, Optional[Dict]] = {}
        for edition in editions:
            if edition.compiler is not Compiler.BABEL:
                continue
            env[edition.directory] = babel_env(edition, language) if edition.active else None
        if not any(env.values()):
            return None
        return {"env": env}

    def _scripts(self, editions: Sequence[Edition]) -> Dict[str, Optional[str]]:
        """Compile scripts of active editions; stale ones of inactive editions are removed."""
        scripts: Dict[str, Optional[str]] = {}
        names: List[str] = []
        for edition in editions:
            for name, command in edition.scripts.items():
                if edition.active:
                    scripts[name] = command
                    names.append(name)
                elif name.startswith(COMPILE_SCRIPT_PREFIX):
                    scripts.setdefault(name, None)
        scripts[COMPILE_SCRIPT] = " && ".join(f"{self.package_manager} run {name}" for name in names) or None
        return scripts

    @staticmethod
    def _executables(bin_entry: Union[None, str, Dict[str, str]]) -> List[str]:
        if not bin_entry:
            return []
        if isinstance(bin_entry, str):
            return [bin_entry]
        return list(bin_entry.values())
