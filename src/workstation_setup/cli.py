"""Command line interface for the workstation setup tool."""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from typing import Optional

from .config import ConfigurationError, Settings
from .console import Console
from .errors import FatalSelectionError, RunAborted
from .execution.command import CommandRunner
from .interceptor import FaultInterceptor
from .logging_utils import configure_logging
from .models import Role
from .orchestrator import Provisioner
from .tasks import REGISTRIES, ROLE_DEFAULTS, common

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_DISTRIBUTION = 1
EXIT_CONFIGURATION = 2
EXIT_ABORTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workstation-setup",
        description="Interactively provision a developer workstation",
    )
    parser.add_argument(
        "--config",
        help="Path to a settings file (YAML); built-in defaults are used when omitted",
    )
    parser.add_argument("--log", help="Path to the run log (defaults to the settings' log_path)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Walk through every prompt but only log the commands that would run",
    )
    parser.add_argument("--verbose", action="store_true", help="Mirror the run log to the terminal")
    parser.add_argument(
        "--list-actions",
        action="store_true",
        help="Print the action catalog of every distribution and exit",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_actions:
        _print_catalog()
        return EXIT_OK

    try:
        settings = Settings.load(pathlib.Path(args.config)) if args.config else Settings.default()
    except ConfigurationError as exc:
        parser.error(str(exc))
        return EXIT_CONFIGURATION

    log_path = configure_logging(args.log or settings.log_path, also_console=args.verbose)

    console = Console()
    runner = CommandRunner(dry_run=args.dry_run)
    # Stays installed for the rest of the process lifetime.
    interceptor = FaultInterceptor(console).install()
    provisioner = Provisioner(settings, console=console, runner=runner, interceptor=interceptor)

    try:
        provisioner.run()
    except FatalSelectionError as exc:
        logger.error("Run terminated: %s", exc)
        return EXIT_INVALID_DISTRIBUTION
    except (RunAborted, KeyboardInterrupt) as exc:
        logger.warning("Run aborted by operator: %s", exc or "interrupt")
        console.say("Aborted by operator.")
        return EXIT_ABORTED

    console.say(f"Run log: {log_path}")
    return EXIT_OK


def _print_catalog() -> None:
    for registry in REGISTRIES.values():
        print(f"{registry.name}:")
        for action in registry:
            print(f"  {action.identifier:<24} {action.label}")
        print()

    print("role defaults:")
    for role in Role:
        identifiers = ROLE_DEFAULTS[role]
        print(f"  {role.label:<10} {', '.join(identifiers) or '(none)'}")
    print()

    print(f"{common.name}:")
    for action in common:
        print(f"  {action.identifier:<24} {action.label}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
