"""Pure queries over an edition collection.

Derived subsets are computed from an explicit sequence each time they are
asked for, or captured once per resolution pass with EditionSnapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from errors import AmbiguousEditionError

from .models import Compiler, Edition, ModuleSystem


def active_editions(editions: Sequence[Edition]) -> List[Edition]:
    return [e for e in editions if e.active]


def source_edition(editions: Sequence[Edition]) -> Edition:
    """The single uncompiled source edition, which must be active."""
    sources = [e for e in editions if e.is_source]
    if len(sources) != 1:
        raise AmbiguousEditionError(
            f"Expected exactly one source edition, found {len(sources)}",
            editions=sources,
        )
    if not sources[0].active:
        raise AmbiguousEditionError(
            f"The source edition [{sources[0].directory}] was deactivated",
            editions=sources,
        )
    return sources[0]


def node_editions(editions: Sequence[Edition]) -> List[Edition]:
    """Active editions that declare node applicability, in planning order."""
    return [e for e in active_editions(editions) if e.is_node_facing]


def editions_for_module_system(editions: Sequence[Edition], module_system: ModuleSystem) -> List[Edition]:
    return [e for e in node_editions(editions) if e.module_system is module_system]


def browser_edition(editions: Sequence[Edition]) -> Optional[Edition]:
    """The canonical browser-facing edition; more than one is an error."""
    browsers = [e for e in active_editions(editions) if e.is_browser_facing]
    if len(browsers) > 1:
        raise AmbiguousEditionError(
            "More than one active browser edition",
            editions=browsers,
        )
    return browsers[0] if browsers else None


def types_edition(editions: Sequence[Edition]) -> Optional[Edition]:
    for edition in active_editions(editions):
        if edition.compiler is Compiler.TYPES:
            return edition
    return None


@dataclass(frozen=True)
class EditionSnapshot:
    """Derived edition subsets captured once for a resolution pass."""
    active: tuple
    source: Edition
    node: tuple
    imports: tuple
    requires: tuple
    browser: Optional[Edition]
    types: Optional[Edition]

    @classmethod
    def capture(cls, editions: Sequence[Edition]) -> "EditionSnapshot":
        return cls(
            active=tuple(active_editions(editions)),
            source=source_edition(editions),
            node=tuple(node_editions(editions)),
            imports=tuple(editions_for_module_system(editions, ModuleSystem.IMPORT)),
            requires=tuple(editions_for_module_system(editions, ModuleSystem.REQUIRE)),
            browser=browser_edition(editions),
            types=types_edition(editions),
        )

    @property
    def node_edition(self) -> Optional[Edition]:
        """Preferred node edition: first require-style, else first import-style."""
        if self.requires:
            return self.requires[0]
        if self.imports:
            return self.imports[0]
        return None

    @property
    def uses_autoloader(self) -> bool:
        return len(self.requires) >= 2
