"""Runtime version comparison helpers built on semantic_version."""

from __future__ import annotations

from typing import Iterable, List, Optional, Union

import semantic_version

VersionLike = Union[str, int, float]


def coerce(version: VersionLike) -> semantic_version.Version:
    """Coerce partial versions ("14", "0.10") into full semantic versions."""
    return semantic_version.Version.coerce(str(version).strip().lstrip("vV"))


def compare_versions(left: VersionLike, right: VersionLike) -> int:
    """Return -1, 0 or 1 comparing two runtime versions numerically."""
    a, b = coerce(left), coerce(right)
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def sort_versions(versions: Iterable[VersionLike], reverse: bool = False) -> List[str]:
    """Sort version strings numerically ("0.10" < "0.12" < "4" < "14")."""
    return sorted((str(v) for v in versions), key=coerce, reverse=reverse)


def major_version(value: Optional[VersionLike]) -> Optional[str]:
    """Reduce a version to its release line.

    0.x releases keep two components ("0.10.48" -> "0.10"); everything else
    keeps the major ("14.17.0" -> "14").
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip().lstrip("vV")
    if not text:
        return None
    parts = text.split(".")
    if parts[0] == "0" and len(parts) > 1:
        return ".".join(parts[:2])
    return parts[0]


def major_versions(values: Iterable[VersionLike]) -> List[str]:
    """Major versions of each value, order preserved, duplicates removed."""
    result: List[str] = []
    for value in values:
        major = major_version(value)
        if major and major not in result:
            result.append(major)
    return result


def satisfies(version: VersionLike, npm_range: str) -> bool:
    """Check a version against an npm-style range such as ">=14" or "16 || 18"."""
    try:
        spec = semantic_version.NpmSpec(npm_range)
    except ValueError:
        return False
    return spec.match(coerce(version))


_LOWER_BOUND_OPERATORS = ("==", ">=", ">")


def _lower_bounds(clause) -> List[semantic_version.Version]:
    nested = getattr(clause, "clauses", None)
    if nested is not None:
        bounds: List[semantic_version.Version] = []
        for child in nested:
            bounds.extend(_lower_bounds(child))
        return bounds
    if getattr(clause, "operator", None) in _LOWER_BOUND_OPERATORS:
        return [clause.target]
    return []


def range_floor(npm_range: Optional[str]) -> Optional[str]:
    """Lowest version an npm-style range admits (">=14.17" -> "14.17.0").

    Returns None for unbounded ("*") or unparseable ranges.
    """
    if not npm_range or not isinstance(npm_range, str):
        return None
    try:
        spec = semantic_version.NpmSpec(npm_range)
    except ValueError:
        return None
    bounds = [b for b in _lower_bounds(spec.clause) if b.major or b.minor or b.patch]
    if not bounds:
        return None
    floor = min(bounds)
    return str(semantic_version.Version(major=floor.major, minor=floor.minor, patch=floor.patch))
