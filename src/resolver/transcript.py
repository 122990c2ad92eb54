"""Diagnostic transcript accumulated during resolution."""

from __future__ import annotations

from typing import Iterable, List, Optional


def _join(values: Iterable[str]) -> str:
    return ", ".join(values) or "none"


class Transcript:
    """Per-edition pass/fail matrices and probe diagnostics, in order."""

    def __init__(self) -> None:
        self._blocks: List[str] = []

    def __len__(self) -> int:
        return len(self._blocks)

    def add(self, text: str) -> None:
        if text:
            self._blocks.append(text.rstrip())

    def record_edition(
        self,
        directory: str,
        target: Optional[str],
        passed: Iterable[str],
        unique: Iterable[str],
        failed: Iterable[str],
        unavailable: Iterable[str],
        node_range: str,
        trim: str = "",
    ) -> None:
        lines = [
            f"edition: {directory}",
            f"  target:      {target or 'none'}",
            f"  passed:      {_join(passed)}",
            f"  unique:      {_join(unique)}",
            f"  failed:      {_join(failed)}",
            f"  unavailable: {_join(unavailable)}",
            f"  range:       {node_range or 'none'}",
        ]
        if trim:
            lines.append(f"  trim:        {trim}")
        self.add("\n".join(lines))

    def text(self) -> str:
        return "\n\n".join(self._blocks)

    def __str__(self) -> str:
        return self.text()
