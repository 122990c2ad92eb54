"""RuntimeProbe contract and a subprocess implementation.

A probe installs runtime versions side by side and runs a command under each
of them, reporting which versions passed. A version that fails to install
is recorded as unavailable; it never stops the other versions.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from errors import ProbeInstallFailure

logger = logging.getLogger(__name__)

PASSED = "passed"
FAILED = "failed"
UNAVAILABLE = "unavailable"

_DIAGNOSTIC_TAIL = 4000


@dataclass
class ProbeResult:
    """Pass/fail matrix of one command across runtime versions."""
    passed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    unavailable: List[str] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)


class RuntimeProbe(Protocol):
    """Capability to install runtime versions and run commands against them."""

    async def install(self, version: str) -> None:
        """Ensure the version is installed; raise ProbeInstallFailure otherwise."""

    async def run(self, command: str, versions: Sequence[str], serial: bool = False) -> ProbeResult:
        """Run the command under each version."""


def _kill_group(proc: asyncio.subprocess.Process) -> None:
    """Kill the process group started for proc, including any forked test runner."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def _unique(versions: Sequence[str]) -> List[str]:
    result: List[str] = []
    for version in versions:
        if version and version not in result:
            result.append(version)
    return result


class SubprocessRuntimeProbe:
    """Runs installs and tests through a version manager CLI (fnm by default)."""

    def __init__(
        self,
        install_template: Optional[str] = None,
        run_template: Optional[str] = None,
        max_concurrency: Optional[int] = None,
        timeout: Optional[float] = None,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
    ):
        """Initialize the probe.

        Args:
            install_template: Command template with a {version} placeholder.
            run_template: Command template with {version} and {command} placeholders.
            max_concurrency: Versions probed at once when not serial.
            timeout: Seconds before a single install or run is killed; None waits forever.
            cwd: Working directory for spawned commands.
            env: Extra environment variables for spawned commands.
        """
        self.install_template = install_template or Constants.PROBE_INSTALL_TEMPLATE
        self.run_template = run_template or Constants.PROBE_RUN_TEMPLATE
        self.max_concurrency = max(1, int(max_concurrency or Constants.PROBE_MAX_CONCURRENCY))
        self.timeout = timeout if timeout is not None else Constants.PROBE_TIMEOUT_SEC
        self.cwd = cwd
        self.env = env

    async def _exec(self, argv: List[str]) -> Tuple[int, str]:
        """Run argv, returning (returncode, combined output)."""
        environment = None
        if self.env:
            environment = os.environ.copy()
            environment.update(self.env)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=self.cwd,
                env=environment,
                start_new_session=True,
            )
        except (FileNotFoundError, PermissionError) as exc:
            return 127, str(exc)
        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            _kill_group(proc)
            await proc.wait()
            return -1, f"timed out after {self.timeout} seconds"
        output = (stdout or b"").decode("utf-8", errors="replace")
        return proc.returncode, output[-_DIAGNOSTIC_TAIL:]

    async def install(self, version: str) -> None:
        argv = shlex.split(self.install_template.format(version=version))
        with Timer() as t:
            code, output = await self._exec(argv)
        if is_debug_enabled(logger):
            logger.debug(
                "Runtime install",
                extra=extra_context(
                    event="probe_install",
                    component="probe",
                    action="install",
                    outcome="success" if code == 0 else "failure",
                    target=version,
                    duration_ms=t.duration_ms()
                )
            )
        if code != 0:
            raise ProbeInstallFailure(version, output.strip())

    async def _probe_one(self, command: str, version: str) -> Tuple[str, str, str]:
        try:
            await self.install(version)
        except ProbeInstallFailure as exc:
            logger.warning("%s", exc)
            return version, UNAVAILABLE, str(exc)
        argv = shlex.split(self.run_template.format(version=version, command=command))
        with Timer() as t:
            code, output = await self._exec(argv)
        outcome = PASSED if code == 0 else FAILED
        if is_debug_enabled(logger):
            logger.debug(
                "Runtime test",
                extra=extra_context(
                    event="probe_run",
                    component="probe",
                    action="run",
                    outcome=outcome,
                    target=version,
                    duration_ms=t.duration_ms()
                )
            )
        return version, outcome, f"node {version} {outcome} [{command}]\n{output.strip()}".strip()

    async def run(self, command: str, versions: Sequence[str], serial: bool = False) -> ProbeResult:
        """Install and test each version, concurrently unless serial."""
        semaphore = asyncio.Semaphore(1 if serial else self.max_concurrency)

        async def _guarded(version: str) -> Tuple[str, str, str]:
            async with semaphore:
                return await self._probe_one(command, version)

        outcomes = await asyncio.gather(*(_guarded(v) for v in _unique(versions)))
        result = ProbeResult()
        for version, outcome, diagnostic in outcomes:
            getattr(result, outcome).append(version)
            if diagnostic:
                result.diagnostics.append(diagnostic)
        return result
