"""Edition descriptions and compile scripts."""

from __future__ import annotations

from typing import Dict

from constants import Constants, Languages

from .models import Compiler, Edition, ModuleSystem

COMPILE_SCRIPT_PREFIX = "our:compile:"

_LANGUAGE_LABELS = {
    Languages.ESNEXT.value: "ESNext",
    Languages.TYPESCRIPT.value: "TypeScript",
    Languages.COFFEESCRIPT.value: "CoffeeScript",
    Languages.JSON.value: "JSON",
}


def describe(edition: Edition, language: str, source_directory: str) -> str:
    """Human readable edition description for the manifest."""
    label = _LANGUAGE_LABELS.get(language, language)
    if edition.directory == source_directory:
        text = f"{label} source code"
    elif edition.compiler is Compiler.TYPES:
        return f"{label} compiled types"
    elif edition.is_browser_facing:
        text = f"{label} compiled for web browsers"
        if edition.engines.browsers not in (True, Constants.DEFAULT_BROWSERS):
            text += f" [{edition.engines.browsers}]"
    elif edition.is_node_facing:
        text = f"{label} compiled for Node.js"
        if edition.targets and edition.targets.dialect_version:
            text = f"{label} compiled against {edition.targets.dialect_version} for Node.js"
        if isinstance(edition.engines.node, str):
            text += f" {edition.engines.node}"
    else:
        text = f"{label} compiled"
    module_system = edition.module_system
    if module_system is ModuleSystem.REQUIRE:
        text += " with Require for modules"
    elif module_system is ModuleSystem.IMPORT:
        text += " with Import for modules"
    return text


def compile_scripts(edition: Edition, language: str, source_directory: str) -> Dict[str, str]:
    """Compile command for a non-source edition, keyed by script name."""
    if edition.is_source:
        return {}
    directory = edition.directory
    name = f"{COMPILE_SCRIPT_PREFIX}{directory}"
    module_system = edition.module_system

    if edition.compiler is Compiler.TYPES:
        return {
            name: " ".join([
                "tsc",
                "--emitDeclarationOnly",
                "--declaration",
                f"--declarationDir ./{directory}",
                f"--project {Constants.TSCONFIG_FILE}",
            ])
        }

    if language == Languages.COFFEESCRIPT.value:
        return {name: f"coffee -bcto ./{directory}/ ./{source_directory}"}

    if edition.compiler is Compiler.TYPESCRIPT:
        target = edition.targets.dialect_version if edition.targets else None
        module = "ESNext" if module_system is ModuleSystem.IMPORT else "commonjs"
        parts = [
            "tsc",
            f"--module {module}",
            f"--target {target}" if target else "",
            f"--outDir ./{directory}",
            f"--project {Constants.TSCONFIG_FILE}",
        ]
        return {name: " ".join(p for p in parts if p)}

    if edition.compiler is Compiler.STRIP_TYPES:
        return {
            name: f"strip-types --out-dir ./{directory} ./{source_directory}"
        }

    parts = [
        f"env BABEL_ENV={directory}",
        "babel",
        '--extensions ".ts,.tsx"' if language == Languages.TYPESCRIPT.value else "",
        f"--out-dir ./{directory}",
        f"./{source_directory}",
    ]
    return {name: " ".join(p for p in parts if p)}


def babel_env(edition: Edition, language: str) -> Dict:
    """Babel preset configuration for a babel-compiled edition."""
    if edition.compiler is not Compiler.BABEL or not edition.targets:
        return {}
    targets = {}
    if edition.targets.runtime_version:
        targets["node"] = edition.targets.runtime_version
    if edition.targets.browsers:
        targets["browsers"] = edition.targets.browsers
    presets = [[
        "@babel/preset-env",
        {
            "targets": targets,
            "modules": False if edition.module_system is ModuleSystem.IMPORT else "commonjs",
        },
    ]]
    if language == Languages.TYPESCRIPT.value:
        presets.append("@babel/preset-typescript")
    return {"presets": presets}
