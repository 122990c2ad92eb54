"""Data models for editions: compiled or source variants of a project."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Set, Union

from catalog.models import DialectVersion


class Compiler(Enum):
    """Compilers an edition can be produced with."""
    NONE = "none"
    BABEL = "babel"
    TYPESCRIPT = "typescript"
    STRIP_TYPES = "strip-types"
    TYPES = "types"


class ModuleSystem(Enum):
    """Module system an edition is written for."""
    IMPORT = "import"
    REQUIRE = "require"


ENTRY_NAMES = ("index", "node", "browser", "test", "bin")


@dataclass
class EditionTargets:
    """Compile targets an edition was built for."""
    runtime_version: Optional[str] = None
    dialect_version: Optional[DialectVersion] = None
    browsers: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        result = {}
        if self.runtime_version:
            result["node"] = self.runtime_version
        if self.dialect_version:
            result["es"] = str(self.dialect_version)
        if self.browsers:
            result["browsers"] = self.browsers
        return result


@dataclass
class EditionEngines:
    """Runtime applicability. node becomes a range string once probed."""
    node: Union[bool, str] = False
    browsers: Union[bool, str] = False

    def to_dict(self) -> Dict[str, Union[bool, str]]:
        return {"node": self.node, "browsers": self.browsers}


@dataclass(eq=False)
class Edition:
    """One compiled or source variant of the project.

    Identity is the directory: two editions with the same directory are the
    same edition. `engines` and `active` are the only fields mutated after
    planning, and only by the resolver.
    """
    directory: str
    compiler: Optional[Compiler] = None
    targets: Optional[EditionTargets] = None
    tags: Set[str] = field(default_factory=set)
    engines: EditionEngines = field(default_factory=EditionEngines)
    entries: Dict[str, str] = field(default_factory=dict)
    active: bool = True
    description: str = ""
    scripts: Dict[str, str] = field(default_factory=dict)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Edition):
            return NotImplemented
        return self.directory == other.directory

    def __hash__(self) -> int:
        return hash(self.directory)

    def entry_path(self, name: str) -> Optional[str]:
        """Path of a named entry relative to the project root."""
        entry = self.entries.get(name)
        if not entry:
            return None
        return posixpath.join(self.directory or ".", entry)

    @property
    def effective_entry_name(self) -> Optional[str]:
        """Which entry consumers should load.

        With both engines enabled the index entry wins; with exactly one,
        that engine's dedicated entry wins when present, falling back to index.
        """
        node = bool(self.engines.node)
        browsers = bool(self.engines.browsers)
        if node != browsers:
            dedicated = "node" if node else "browser"
            if self.entries.get(dedicated):
                return dedicated
        if self.entries.get("index"):
            return "index"
        return None

    @property
    def effective_entry(self) -> Optional[str]:
        name = self.effective_entry_name
        return self.entries.get(name) if name else None

    @property
    def effective_entry_path(self) -> Optional[str]:
        name = self.effective_entry_name
        return self.entry_path(name) if name else None

    @property
    def module_system(self) -> Optional[ModuleSystem]:
        if ModuleSystem.IMPORT.value in self.tags:
            return ModuleSystem.IMPORT
        if ModuleSystem.REQUIRE.value in self.tags:
            return ModuleSystem.REQUIRE
        return None

    @property
    def is_source(self) -> bool:
        return self.compiler is None

    @property
    def is_node_facing(self) -> bool:
        return bool(self.engines.node)

    @property
    def is_browser_facing(self) -> bool:
        return bool(self.engines.browsers)

    @property
    def target_runtime_version(self) -> Optional[str]:
        return self.targets.runtime_version if self.targets else None

    def to_manifest(self) -> Dict[str, Any]:
        """Render the edition as a manifest `editions` entry."""
        return {
            "description": self.description,
            "directory": self.directory,
            "entry": self.effective_entry or self.entries.get("index"),
            "tags": sorted(self.tags),
            "engines": self.engines.to_dict(),
        }
