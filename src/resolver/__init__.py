"""Engine resolution: empirical pruning of editions against runtime versions."""

from .commands import TestCommandResolver
from .engine import EngineResolver, ResolutionResult
from .probe import ProbeResult, RuntimeProbe, SubprocessRuntimeProbe
from .transcript import Transcript
from .versions import TargetVersions, exact_range, floor_range

__all__ = [
    "EngineResolver",
    "ResolutionResult",
    "ProbeResult",
    "RuntimeProbe",
    "SubprocessRuntimeProbe",
    "TargetVersions",
    "TestCommandResolver",
    "Transcript",
    "exact_range",
    "floor_range",
]
