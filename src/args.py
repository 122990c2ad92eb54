"""Argument parsing functionality for editioner."""

import argparse

from constants import Constants, EnginesPolicy


def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="editioner",
        description=(
            "editioner - plan compiled editions of a JavaScript project and "
            "prune them against the Node.js versions they actually pass on"
        ),
        add_help=True,
    )

    parser.add_argument("-m", "--manifest",
                        dest="MANIFEST",
                        help="Path to the project manifest (default: package.json)",
                        action="store",
                        type=str,
                        default=Constants.MANIFEST_FILE)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help=f"Path to configuration file (YAML, YML, or JSON; default: {Constants.CONFIG_FILE} if present)",
                        action="store",
                        type=str)
    parser.add_argument("--set",
                        dest="ANSWER_SET",
                        help="Set a project answer override (KEY=VALUE format, can be used multiple times)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--plan-only",
                        dest="PLAN_ONLY",
                        help="Print the planned editions as JSON and exit without probing.",
                        action="store_true")
    parser.add_argument("--engines-policy",
                        dest="ENGINES_POLICY",
                        help="How engines.node is declared (default: exact)",
                        action="store",
                        type=str.lower,
                        choices=[p.value for p in EnginesPolicy])
    parser.add_argument("--serial",
                        dest="SERIAL",
                        help="Run tests against one Node.js version at a time.",
                        action="store_true")
    parser.add_argument("--schedule-url",
                        dest="SCHEDULE_URL",
                        help="URL of the Node.js release schedule JSON",
                        action="store",
                        type=str)
    parser.add_argument("--max-cycles",
                        dest="MAX_CYCLES",
                        help=f"Maximum resolution cycles (default: {Constants.RESOLVER_MAX_CYCLES})",
                        action="store",
                        type=int)
    parser.add_argument("--probe-timeout",
                        dest="PROBE_TIMEOUT",
                        help="Seconds before a single install or test run is killed (0 disables)",
                        action="store",
                        type=float)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
