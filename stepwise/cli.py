"""CLI entry point for stepwise."""

import argparse
import asyncio
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from stepwise.models.report import AggregateResult
from stepwise.process import SetupError, process
from stepwise.reporting import (
    REPORT_FORMATS,
    ReportWriteError,
    encode_report,
    summary_lines,
    write_report,
)

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

EXIT_SETUP_ERROR = 2


def has_failures(result: AggregateResult) -> bool:
    """Whether any suite recorded a failure or an error."""
    return any(suite.failures or suite.errors for suite in result.test_suites)


async def run(
    path: str,
    aliases: Sequence[str] = (),
    parallel: int = 1,
    details: str = "medium",
    report_format: str = "xml",
    output_dir: Path | None = None,
    resume: bool = True,
    resume_failures: bool = True,
    step_timeout: float | None = None,
    suite_timeout: float | None = None,
) -> int:
    """Run suites, output the report and return exit code."""
    log = logging.getLogger("stepwise")

    started = time.monotonic()
    try:
        result = await process(
            path,
            aliases,
            parallel,
            details,
            step_timeout=step_timeout,
            suite_timeout=suite_timeout,
        )
    except SetupError as exc:
        log.error("Cannot run suites: %s", exc)
        return EXIT_SETUP_ERROR
    elapsed = time.monotonic() - started

    if details == "high":
        print(encode_report(result, report_format))

    if resume:
        for line in summary_lines(result, elapsed, include_failures=resume_failures):
            print(line)

    if output_dir is not None:
        try:
            write_report(result, report_format, output_dir)
        except ReportWriteError as exc:
            log.error("%s", exc)
            return 1

    return 1 if has_failures(result) else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stepwise", description="Run declarative test suites"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run test suites")
    run_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Suite file, directory of suite files, or glob pattern",
    )
    run_parser.add_argument(
        "--alias",
        action="append",
        default=[],
        help="Alias as name:value, e.g. --alias cds:'cds -f config.json'",
    )
    run_parser.add_argument(
        "--format",
        choices=REPORT_FORMATS,
        default="xml",
        help="Report format",
    )
    run_parser.add_argument(
        "--parallel",
        type=int,
        default=1,
        help="Number of test suites run in parallel",
    )
    run_parser.add_argument(
        "--log",
        choices=sorted(LOG_LEVELS),
        default="warn",
        help="Log level",
    )
    run_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory receiving the test_results.<format> report",
    )
    run_parser.add_argument(
        "--details",
        default="medium",
        help="Output details level: low, medium or high",
    )
    run_parser.add_argument(
        "--resume",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Print a summary line with totals",
    )
    run_parser.add_argument(
        "--resume-failures",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Print the failures of failed suites",
    )
    run_parser.add_argument(
        "--step-timeout",
        type=float,
        default=None,
        help="Deadline in seconds for each step",
    )
    run_parser.add_argument(
        "--suite-timeout",
        type=float,
        default=None,
        help="Deadline in seconds for each suite",
    )
    return parser


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=LOG_LEVELS[args.log],
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            path=args.path,
            aliases=args.alias,
            parallel=args.parallel,
            details=args.details,
            report_format=args.format,
            output_dir=args.output_dir,
            resume=args.resume,
            resume_failures=args.resume_failures,
            step_timeout=args.step_timeout,
            suite_timeout=args.suite_timeout,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
