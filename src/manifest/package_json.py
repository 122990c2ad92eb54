"""package.json reader/writer used as the manifest collaborator."""

from __future__ import annotations

import json
import logging
import os
import stat
from typing import Any, Dict

from constants import Constants
from editions.entries import AUTOLOADER_MARKER, ManifestPatch

logger = logging.getLogger(__name__)


def deep_merge(dest: Dict[str, Any], src: Dict[str, Any]) -> None:
    """Deep-merge src into dest in-place; a None value deletes the key."""
    for k, v in src.items():
        if v is None:
            dest.pop(k, None)
        elif isinstance(v, dict) and isinstance(dest.get(k), dict):
            deep_merge(dest[k], v)
            if not dest[k]:
                dest.pop(k)
        elif isinstance(v, dict):
            merged: Dict[str, Any] = {}
            deep_merge(merged, v)
            if merged:
                dest[k] = merged
            else:
                dest.pop(k, None)
        else:
            dest[k] = v


def _dump(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


class PackageJsonStore:
    """Reads and patches the package.json at a project root."""

    def __init__(self, root: str = ".", filename: str = Constants.MANIFEST_FILE):
        self.root = root
        self.path = os.path.join(root, filename)

    def read_manifest(self) -> Dict[str, Any]:
        """Return the parsed manifest.

        Raises:
            FileNotFoundError: if the manifest does not exist.
            ValueError: if the manifest is not a JSON object.
        """
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def write_manifest(self, patch: ManifestPatch) -> Dict[str, Any]:
        """Apply a patch to the manifest and its neighbouring files.

        Args:
            patch: ManifestPatch built by the entry writer.

        Returns:
            The manifest as written.
        """
        try:
            data = self.read_manifest()
        except FileNotFoundError:
            data = {}
        deep_merge(data, patch.package)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(_dump(data))

        for directory, package_type in patch.type_markers.items():
            target = os.path.join(self.root, directory)
            os.makedirs(target, exist_ok=True)
            with open(os.path.join(target, Constants.MANIFEST_FILE), "w", encoding="utf-8") as f:
                f.write(_dump({"type": package_type}))

        for relative, contents in patch.files.items():
            path = os.path.join(self.root, relative)
            if contents is None:
                self._remove_generated(path)
            else:
                with open(path, "w", encoding="utf-8") as f:
                    f.write(contents)

        for relative in patch.executables:
            path = os.path.join(self.root, relative)
            if os.path.isfile(path):
                mode = os.stat(path).st_mode
                os.chmod(path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

        logger.debug("Wrote %s", self.path)
        return data

    @staticmethod
    def _remove_generated(path: str) -> None:
        """Remove an autoloader file only if it was generated by us."""
        if not os.path.isfile(path):
            return
        with open(path, "r", encoding="utf-8") as f:
            generated = AUTOLOADER_MARKER in f.read()
        if generated:
            os.remove(path)
            logger.info("Removed autoloader %s", path)
