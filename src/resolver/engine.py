"""EngineResolver: empirical pruning of editions against runtime versions.

Each resolution cycle runs two passes over the active node-facing editions,
import-style first and require-style second, in planning order (newest
runtime target first):

- every edition is probed against the pass's tested versions plus its own
  target version, and its engines.node becomes the disjunction of the
  major versions that passed;
- an edition that passes everything it was probed against supersedes every
  earlier edition of the pass, and the remaining editions are not probed;
- an edition with no passing version outside the pool accumulated by the
  editions kept so far is deactivated, and kept editions whose passing set
  is contained in a later edition's passing set are deactivated.

The import pass keeps a single edition: two or more survivors is an
AmbiguousEditionError. Cycles repeat until one makes no change, bounded by
max_cycles.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from catalog.versions import major_version, major_versions, sort_versions
from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants, EnginesPolicy
from editions.models import Edition, ModuleSystem
from editions.queries import EditionSnapshot
from errors import AmbiguousEditionError, CoverageGapError, FixedPointError

from .commands import TestCommandResolver
from .probe import ProbeResult, RuntimeProbe
from .transcript import Transcript
from .versions import TargetVersions, exact_range, floor_range

logger = logging.getLogger(__name__)

ProbeKey = Tuple[str, Tuple[str, ...]]


@dataclass
class EditionOutcome:
    """What one edition did during one pass."""
    edition: Edition
    target: Optional[str] = None
    passed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    unavailable: List[str] = field(default_factory=list)
    unique: List[str] = field(default_factory=list)
    covers_all: bool = False
    trim: str = ""


@dataclass
class PassReport:
    module_system: ModuleSystem
    outcomes: List[EditionOutcome] = field(default_factory=list)
    kept: List[EditionOutcome] = field(default_factory=list)

    @property
    def pool(self) -> Set[str]:
        """Versions passed by the editions kept in this pass."""
        result: Set[str] = set()
        for outcome in self.kept:
            result.update(outcome.passed)
        return result


@dataclass
class ResolutionResult:
    """Final state of a successful resolution."""
    editions: List[Edition]
    engines_node: str
    passed_versions: List[str]
    extra_versions: List[str]
    unavailable_versions: List[str]
    probed_editions: bool
    cycles: int
    transcript: str = ""
    reports: List[PassReport] = field(default_factory=list)

    @property
    def active_editions(self) -> List[Edition]:
        return [e for e in self.editions if e.active]


class ResolutionContext:
    """State owned by one resolve() call: probe cache and transcript."""

    def __init__(self) -> None:
        self.probe_cache: Dict[ProbeKey, ProbeResult] = {}
        self.transcript = Transcript()
        self.installed: Set[str] = set()
        self.unavailable: Set[str] = set()

    def record(self, result: ProbeResult) -> None:
        self.installed.update(major_versions(result.passed + result.failed))
        self.unavailable.update(major_versions(result.unavailable))
        for diagnostic in result.diagnostics:
            self.transcript.add(diagnostic)

    @property
    def unavailable_everywhere(self) -> List[str]:
        """Versions whose install failed on every probe that tried them."""
        return sort_versions(self.unavailable - self.installed)


class EngineResolver:
    """Drives a RuntimeProbe over candidate editions until the set is stable."""

    def __init__(
        self,
        probe: RuntimeProbe,
        targets: TargetVersions,
        commands: Optional[TestCommandResolver] = None,
        *,
        serial: bool = False,
        policy: Optional[EnginesPolicy] = None,
        max_cycles: Optional[int] = None,
        entry_writer: Any = None,
        recompile: Optional[Callable[[Sequence[Edition]], Any]] = None,
    ):
        """Initialize the resolver.

        Args:
            probe: RuntimeProbe used to install versions and run tests.
            targets: Tested and supported runtime versions.
            commands: Resolves the test command of an edition or project.
            serial: Force sequential test runs inside the probe.
            policy: How engines.node is declared; defaults to Constants.ENGINES_POLICY.
            max_cycles: Upper bound on resolution cycles.
            entry_writer: Optional EditionEntryWriter called once per cycle.
            recompile: Optional hook, sync or async, called with the editions
                after a cycle changed the edition set.
        """
        self.probe = probe
        self.targets = targets
        self.commands = commands or TestCommandResolver()
        self.serial = serial
        self.policy = policy or EnginesPolicy(Constants.ENGINES_POLICY)
        self.max_cycles = max_cycles or Constants.RESOLVER_MAX_CYCLES
        self.entry_writer = entry_writer
        self.recompile = recompile

    async def resolve(self, editions: Sequence[Edition]) -> ResolutionResult:
        """Resolve engines and prune editions until a cycle makes no change.

        Raises:
            AmbiguousEditionError: conflicting import editions or browser editions.
            CoverageGapError: a required version passed on no kept edition.
            FixedPointError: the edition set kept changing for max_cycles cycles.
        """
        context = ResolutionContext()
        for cycle in range(1, self.max_cycles + 1):
            logger.info("%s resolution cycle %d...", Constants.RESOLVE, cycle)
            before = self._state(editions)
            with Timer() as t:
                result = await self._cycle(editions, context, cycle)
            changed = self._state(editions) != before
            if is_debug_enabled(logger):
                logger.debug(
                    "Resolution cycle",
                    extra=extra_context(
                        event="resolve_cycle",
                        component="resolver",
                        action="cycle",
                        outcome="changed" if changed else "stable",
                        target=result.engines_node,
                        duration_ms=t.duration_ms()
                    )
                )
            if self.entry_writer is not None:
                self.entry_writer.write(editions, result.engines_node)
            if not changed:
                logger.info(
                    "%s resolved engines.node [%s] with editions: %s",
                    Constants.RESOLVE,
                    result.engines_node,
                    ", ".join(e.directory for e in result.active_editions),
                )
                return result
            if self.recompile is not None:
                outcome = self.recompile(editions)
                if inspect.isawaitable(outcome):
                    await outcome
                context.probe_cache.clear()
        raise FixedPointError(
            f"Editions were still changing after {self.max_cycles} resolution cycles",
            transcript=context.transcript.text(),
            editions=[e for e in editions if e.active],
        )

    # ---------- cycle ----------

    @staticmethod
    def _state(editions: Sequence[Edition]) -> List[Tuple[str, bool, bool]]:
        return [(e.directory, e.active, e.is_node_facing) for e in editions]

    async def _cycle(self, editions: Sequence[Edition], context: ResolutionContext, cycle: int) -> ResolutionResult:
        snapshot = EditionSnapshot.capture(editions)
        reports: List[PassReport] = []
        if not snapshot.imports and not snapshot.requires:
            passed = await self._probe_project(context, editions)
            probed_editions = False
        else:
            import_report = await self._run_pass(ModuleSystem.IMPORT, snapshot.imports, context)
            self._check_import_ambiguity(import_report, context)
            require_report = await self._run_pass(ModuleSystem.REQUIRE, snapshot.requires, context)
            reports = [import_report, require_report]
            passed = sort_versions(import_report.pool | require_report.pool)
            probed_editions = True

        unavailable = context.unavailable_everywhere
        self._check_coverage(passed, unavailable, editions, context)
        extra = [v for v in passed if v not in self.targets.supported]
        if extra:
            logger.info(
                "%s versions passed beyond the supported range: %s",
                Constants.RESOLVE,
                ", ".join(extra),
            )
        return ResolutionResult(
            editions=list(editions),
            engines_node=self._engines_declaration(passed, probed_editions),
            passed_versions=passed,
            extra_versions=extra,
            unavailable_versions=unavailable,
            probed_editions=probed_editions,
            cycles=cycle,
            transcript=context.transcript.text(),
            reports=reports,
        )

    async def _probe(self, command: str, versions: Sequence[str], context: ResolutionContext) -> ProbeResult:
        key = (command, tuple(versions))
        cached = context.probe_cache.get(key)
        if cached is not None:
            return cached
        result = await self.probe.run(command, list(versions), serial=self.serial)
        context.record(result)
        context.probe_cache[key] = result
        return result

    async def _probe_project(self, context: ResolutionContext, editions: Sequence[Edition]) -> List[str]:
        command = self.commands.for_project()
        logger.info("%s no node editions, testing the project with [%s]", Constants.RESOLVE, command)
        result = await self._probe(command, self.targets.tested, context)
        passed = sort_versions(major_versions(result.passed))
        context.transcript.record_edition(
            directory="(project)",
            target=None,
            passed=passed,
            unique=passed,
            failed=major_versions(result.failed),
            unavailable=major_versions(result.unavailable),
            node_range=exact_range(passed),
        )
        if not passed:
            raise CoverageGapError(
                f"The project passed on none of the tested versions [{', '.join(self.targets.tested)}]",
                transcript=context.transcript.text(),
                editions=[e for e in editions if e.active],
                versions=self.targets.tested,
            )
        return passed

    async def _run_pass(
        self,
        module_system: ModuleSystem,
        editions: Sequence[Edition],
        context: ResolutionContext,
    ) -> PassReport:
        report = PassReport(module_system=module_system)
        if not editions:
            return report
        logger.info(
            "%s testing %s editions: %s",
            Constants.RESOLVE,
            module_system.value,
            ", ".join(e.directory for e in editions),
        )
        required = self.targets.tested_for(module_system)
        superseded_by: Optional[Edition] = None

        for edition in editions:
            if superseded_by is not None:
                outcome = EditionOutcome(edition=edition)
                outcome.trim = self._deactivate(
                    edition, f"[{superseded_by.directory}] already passes all targets", context
                )
                report.outcomes.append(outcome)
                continue

            outcome = await self._probe_edition(edition, required, report.pool, context)
            report.outcomes.append(outcome)
            self._record(outcome, context)

            if outcome.covers_all:
                for prior in report.kept:
                    prior.trim = self._deactivate(
                        prior.edition, f"superseded by [{edition.directory}]", context
                    )
                report.kept = [outcome]
                superseded_by = edition
            elif not outcome.unique:
                outcome.trim = self._deactivate(edition, "no unique passing versions", context)
            else:
                for prior in list(report.kept):
                    if set(prior.passed) <= set(outcome.passed):
                        prior.trim = self._deactivate(
                            prior.edition, f"passing versions covered by [{edition.directory}]", context
                        )
                        report.kept.remove(prior)
                report.kept.append(outcome)
        return report

    async def _probe_edition(
        self,
        edition: Edition,
        required: Sequence[str],
        pool: Set[str],
        context: ResolutionContext,
    ) -> EditionOutcome:
        target = major_version(edition.target_runtime_version)
        versions = list(required)
        if target and target not in versions:
            versions.append(target)
        command = self.commands.for_edition(edition)
        result = await self._probe(command, versions, context)

        passed = sort_versions(major_versions(result.passed))
        failed = sort_versions(major_versions(result.failed))
        unavailable = sort_versions(major_versions(result.unavailable))
        edition.engines.node = exact_range(passed) if passed else False
        return EditionOutcome(
            edition=edition,
            target=target,
            passed=passed,
            failed=failed,
            unavailable=unavailable,
            unique=[v for v in passed if v not in pool],
            covers_all=bool(passed) and not failed,
        )

    @staticmethod
    def _record(outcome: EditionOutcome, context: ResolutionContext) -> None:
        edition = outcome.edition
        node_range = edition.engines.node if isinstance(edition.engines.node, str) else ""
        context.transcript.record_edition(
            directory=edition.directory,
            target=outcome.target,
            passed=outcome.passed,
            unique=outcome.unique,
            failed=outcome.failed,
            unavailable=outcome.unavailable,
            node_range=node_range,
        )
        logger.info(
            "%s %s passed [%s] unique [%s] failed [%s]",
            Constants.RESOLVE,
            edition.directory,
            ", ".join(outcome.passed),
            ", ".join(outcome.unique),
            ", ".join(outcome.failed + outcome.unavailable),
        )

    @staticmethod
    def _deactivate(edition: Edition, reason: str, context: ResolutionContext) -> str:
        """Deactivate an edition; the source edition only stops being node-facing."""
        if edition.is_source:
            edition.engines.node = False
            reason = f"no longer node-facing, {reason}"
        else:
            edition.active = False
        context.transcript.add(f"trim: {edition.directory}: {reason}")
        logger.info("%s trimmed %s: %s", Constants.RESOLVE, edition.directory, reason)
        return reason

    # ---------- checks ----------

    def _check_import_ambiguity(self, report: PassReport, context: ResolutionContext) -> None:
        """Several surviving import editions are accepted only when together they
        pass every supported import version."""
        if len(report.kept) < 2:
            return
        unavailable = context.unavailable_everywhere
        uncovered = [
            v for v in self.targets.tested_for(ModuleSystem.IMPORT)
            if v in self.targets.supported and v not in report.pool and v not in unavailable
        ]
        if uncovered:
            raise AmbiguousEditionError(
                "More than one import edition has unique passing versions and together "
                f"they still miss [{', '.join(uncovered)}]",
                transcript=context.transcript.text(),
                editions=[o.edition for o in report.kept],
                versions=uncovered,
            )

    def _check_coverage(
        self,
        passed: Sequence[str],
        unavailable: Sequence[str],
        editions: Sequence[Edition],
        context: ResolutionContext,
    ) -> None:
        if unavailable:
            logger.warning(
                "%s versions could not be installed and were not tested: %s",
                Constants.RESOLVE,
                ", ".join(unavailable),
            )
        if not passed:
            raise CoverageGapError(
                "No kept edition passed any tested version",
                transcript=context.transcript.text(),
                editions=[e for e in editions if e.active],
                versions=self.targets.tested,
            )
        missing = [
            v for v in self.targets.required
            if v not in passed and v not in unavailable
        ]
        if missing:
            raise CoverageGapError(
                f"No kept edition passed the supported versions [{', '.join(missing)}]",
                transcript=context.transcript.text(),
                editions=[e for e in editions if e.active and e.is_node_facing],
                versions=missing,
            )

    def _engines_declaration(self, passed: Sequence[str], probed_editions: bool) -> str:
        ordered = sort_versions(passed)
        if self.policy is EnginesPolicy.EXPAND:
            return floor_range(ordered[0])
        if probed_editions and self.policy is EnginesPolicy.EXACT:
            return exact_range(ordered)
        supported = [v for v in ordered if v in self.targets.supported]
        return floor_range((supported or ordered)[0])
