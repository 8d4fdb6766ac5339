"""Command-line interface for the token top-up report."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Sequence

from topups.config import ConfigError, ReportConfig, build_config
from topups.loader import TopUpError
from topups.pipeline import run

logger = logging.getLogger("topups.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Top up user tokens and summarise them by company")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="run")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to a YAML configuration file (defaults to TOPUPS_CONFIG or ./topups.yaml)",
    )
    common.add_argument("--users", default=None, help="Path to the users JSON file")
    common.add_argument("--companies", default=None, help="Path to the companies JSON file")
    common.add_argument("--output", default=None, help="Path of the report to write")
    common.add_argument(
        "--reference",
        default=None,
        help="Reference report the output is compared against",
    )
    common.add_argument(
        "--no-verify",
        dest="verify",
        action="store_false",
        default=None,
        help="Skip the comparison against the reference report",
    )
    common.add_argument(
        "--quiet-progress",
        dest="show_progress",
        action="store_false",
        default=None,
        help="Do not print a progress dot per user",
    )
    common.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers.add_parser("run", parents=[common], help="Generate the top-up report")
    subparsers.add_parser(
        "check-config",
        parents=[common],
        help="Print the resolved configuration and exit",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"run", "check-config"}

    if not args_list:
        args_list = ["run"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            args_list = ["run", *args_list]

    return parser.parse_args(args_list)


def _build_config(args: argparse.Namespace) -> ReportConfig:
    return build_config(
        args.config,
        users_path=args.users,
        companies_path=args.companies,
        output_path=args.output,
        reference_path=args.reference,
        verify=args.verify,
        show_progress=args.show_progress,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        config = _build_config(args)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if args.command == "check-config":
        print(config.describe())
        return 0

    try:
        summary = run(config)
    except TopUpError as exc:
        logger.debug("Run aborted", exc_info=True)
        print(f"{exc.prefix}{exc}", file=sys.stderr)
        return 1

    logger.debug(
        "Processed %d users across %d companies; %d topped up",
        summary.user_count,
        summary.company_count,
        summary.eligible_count,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
