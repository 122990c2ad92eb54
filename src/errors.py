"""Error taxonomy for catalog fetching and engine resolution.

Fatal errors derive from EditionerError and abort resolution. Resolution
errors carry the accumulated diagnostic transcript and the editions that
were involved so the caller can report why no fixed point was reached.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence


class EditionerError(Exception):
    """Base class for all editioner errors."""


class FetchFailure(EditionerError):
    """The runtime release schedule could not be retrieved."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        message = f"Failed to fetch the release schedule from {url}: {reason}"
        if status_code:
            message += f" (status {status_code})"
        super().__init__(message)


class ResolutionError(EditionerError):
    """Resolution could not reach a valid fixed point."""

    def __init__(
        self,
        message: str,
        *,
        transcript: str = "",
        editions: Optional[Sequence[Any]] = None,
        versions: Optional[Sequence[str]] = None,
    ):
        self.transcript = transcript
        self.editions: List[Any] = list(editions or [])
        self.versions: List[str] = list(versions or [])
        super().__init__(message)

    def report(self) -> str:
        """Render the message, the involved editions and the transcript."""
        lines = [str(self)]
        if self.editions:
            directories = ", ".join(getattr(e, "directory", str(e)) for e in self.editions)
            lines.append(f"editions: {directories}")
        if self.versions:
            lines.append(f"versions: {', '.join(self.versions)}")
        if self.transcript:
            lines.append("")
            lines.append(self.transcript.rstrip())
        return "\n".join(lines)


class AmbiguousEditionError(ResolutionError):
    """More than one edition claims a role that only one may hold."""


class CoverageGapError(ResolutionError):
    """A required runtime version passed on no kept edition."""


class FixedPointError(ResolutionError):
    """Pruning kept changing the edition set past the cycle limit."""


class ProbeInstallFailure(EditionerError):
    """A single runtime version could not be installed.

    Non-fatal: the probe records the version as failed and carries on with
    the remaining versions.
    """

    def __init__(self, version: str, detail: str = ""):
        self.version = version
        self.detail = detail
        message = f"Failed to install runtime version {version}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
