"""Project manifest (package.json) reader and writer."""

from .package_json import PackageJsonStore, deep_merge

__all__ = ["PackageJsonStore", "deep_merge"]
