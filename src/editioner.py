"""editioner: plan compiled editions and resolve the Node.js versions they support.

Reads the project manifest and answers, plans the candidate editions,
compiles them, probes each one against the tested Node.js versions and
prunes the set until it is stable, then writes the chosen entrypoints and
engines.node back into the manifest.
"""

# pylint: disable=too-many-return-statements
import asyncio
import json
import logging
import os
import sys

import yaml

from args import parse_args
from catalog.service import VersionCatalog
from cli_config import ProjectAnswers, apply_cli_overrides, collect_overrides, load_config_file
from common.logging_utils import Timer, configure_logging, extra_context, is_debug_enabled
from constants import Constants, EnginesPolicy, ExitCodes
from editions.entries import COMPILE_SCRIPT, EditionEntryWriter
from editions.planner import EditionPlanner
from errors import EditionerError, FetchFailure, ResolutionError
from manifest.package_json import PackageJsonStore
from resolver.commands import TestCommandResolver
from resolver.engine import EngineResolver
from resolver.probe import SubprocessRuntimeProbe
from resolver.versions import TargetVersions

logger = logging.getLogger(__name__)


class CompileFailure(EditionerError):
    """The edition compile scripts exited with a non-zero status."""


def make_compiler(package_manager: str, cwd: str):
    """Return an async hook that runs the aggregate compile script."""

    async def _compile(editions) -> None:
        if not any(e.scripts for e in editions if e.active):
            return
        logger.info("%s compiling editions...", Constants.RESOLVE)
        with Timer() as t:
            proc = await asyncio.create_subprocess_exec(
                package_manager, "run", COMPILE_SCRIPT,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=cwd,
            )
            stdout, _ = await proc.communicate()
        if is_debug_enabled(logger):
            logger.debug(
                "Compiled editions",
                extra=extra_context(
                    event="compile",
                    component="cli",
                    action=COMPILE_SCRIPT,
                    outcome="success" if proc.returncode == 0 else "failure",
                    duration_ms=t.duration_ms()
                )
            )
        if proc.returncode != 0:
            output = (stdout or b"").decode("utf-8", errors="replace")
            raise CompileFailure(f"{package_manager} run {COMPILE_SCRIPT} failed:\n{output[-4000:]}")

    return _compile


async def run(answers: ProjectAnswers, catalog: VersionCatalog, store: PackageJsonStore, manifest: dict, plan_only: bool = False):
    """Plan, compile and resolve editions for one project.

    Returns:
        The ResolutionResult, or the planned editions when plan_only is set.
    """
    if not answers.has_version_ranges():
        raise ValueError("Could not determine the Node.js versions to test and support")
    targets = TargetVersions.from_ranges(
        catalog,
        answers.minimum_test,
        answers.maximum_test,
        answers.minimum_support,
        answers.maximum_support,
    )
    logger.info(
        "%s testing node versions [%s], supporting [%s]",
        Constants.RESOLVE,
        ", ".join(targets.tested),
        ", ".join(targets.supported),
    )
    editions = EditionPlanner(catalog).plan(answers.plan_request(targets.tested))
    if plan_only:
        return editions

    writer = EditionEntryWriter(
        store,
        bin_name=answers.bin_name,
        language=answers.language,
        package_manager=answers.package_manager,
    )
    compile_editions = make_compiler(answers.package_manager, store.root)
    existing = (manifest.get("engines") or {}).get("node") if isinstance(manifest.get("engines"), dict) else None
    writer.write(editions, existing)
    await compile_editions(editions)

    resolver = EngineResolver(
        SubprocessRuntimeProbe(cwd=store.root),
        targets,
        TestCommandResolver(answers.package_manager, answers.test_template),
        serial=answers.serial,
        policy=EnginesPolicy(Constants.ENGINES_POLICY),
        max_cycles=Constants.RESOLVER_MAX_CYCLES,
        entry_writer=writer,
        recompile=compile_editions,
    )
    return await resolver.resolve(editions)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    try:
        apply_cli_overrides(args)
    except ValueError as exc:
        logger.error("%s", exc)
        sys.exit(ExitCodes.CONFIG_ERROR.value)

    manifest_path = args.MANIFEST
    store = PackageJsonStore(
        root=os.path.dirname(manifest_path) or ".",
        filename=os.path.basename(manifest_path),
    )
    try:
        manifest = store.read_manifest()
    except (OSError, ValueError) as exc:
        logger.error("Unable to read manifest %s: %s", manifest_path, exc)
        sys.exit(ExitCodes.FILE_ERROR.value)

    try:
        config = load_config_file(args.CONFIG)
    except OSError as exc:
        logger.error("Unable to read config: %s", exc)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except (ValueError, yaml.YAMLError) as exc:
        logger.error("Invalid config: %s", exc)
        sys.exit(ExitCodes.CONFIG_ERROR.value)

    catalog = VersionCatalog()
    try:
        # load the release table before entering the event loop
        catalog.releases()
        answers = ProjectAnswers.from_sources(
            config, collect_overrides(args.ANSWER_SET), manifest, catalog
        )
        if args.SERIAL:
            answers.serial = True
        result = asyncio.run(run(answers, catalog, store, manifest, plan_only=args.PLAN_ONLY))
    except FetchFailure as exc:
        logger.error("%s", exc)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)
    except ResolutionError as exc:
        logger.error("%s", exc.report())
        sys.exit(ExitCodes.RESOLUTION_ERROR.value)
    except EditionerError as exc:
        logger.error("%s", exc)
        sys.exit(ExitCodes.RESOLUTION_ERROR.value)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(ExitCodes.CONFIG_ERROR.value)

    if args.PLAN_ONLY:
        print(json.dumps([e.to_manifest() for e in result], indent=2))
    else:
        print(json.dumps({
            "engines": {"node": result.engines_node},
            "editions": [e.directory for e in result.active_editions],
            "unavailable": result.unavailable_versions,
        }, indent=2))
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
