"""Editions: compiled or source variants of a project.

This package models editions, plans the candidate edition set for a
project, answers queries over an edition collection and writes the chosen
entrypoints back into the project manifest.
"""

from .models import Compiler, Edition, EditionEngines, EditionTargets, ModuleSystem
from .planner import EditionPlanner, PlanRequest
from .queries import EditionSnapshot
from .entries import EditionEntryWriter, ManifestPatch

__all__ = [
    "Compiler",
    "Edition",
    "EditionEngines",
    "EditionTargets",
    "ModuleSystem",
    "EditionPlanner",
    "PlanRequest",
    "EditionSnapshot",
    "EditionEntryWriter",
    "ManifestPatch",
]
