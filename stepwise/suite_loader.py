"""Discovery and loading of suite definition files."""

import asyncio
import contextlib
import glob
import logging
from collections.abc import Sequence
from pathlib import Path

import yaml
from pydantic import ValidationError

from stepwise.context import RunContext
from stepwise.models.report import Suite
from stepwise.progress import SuiteRegistered

SUITE_PATTERNS = ("*.yml", "*.yaml")

log = logging.getLogger(__name__)


class LoadError(Exception):
    """Raised when a suite file cannot be read or parsed."""


def check_pattern(pattern: str) -> None:
    """Reject glob patterns with an unterminated character class.

    Raises:
        ValueError: If the pattern is malformed

    """
    if pattern.rfind("[") > pattern.rfind("]"):
        raise ValueError(f"Invalid path pattern '{pattern}': unterminated '['")


def discover_suite_files(path: str | Path) -> Sequence[Path]:
    """Expand a path into the suite files it designates.

    A directory is expanded to the suite files directly inside it, without
    recursion. Anything else is used as a glob pattern.

    Returns:
        Matching files, sorted

    """
    candidate = Path(path)
    if candidate.is_dir():
        log.debug("Expanding directory %s", candidate)
        return sorted(
            {
                file
                for pattern in SUITE_PATTERNS
                for file in candidate.glob(pattern)
                if file.is_file()
            }
        )

    return sorted(
        Path(match) for match in glob.glob(str(path)) if Path(match).is_file()
    )


def parse_suite_file(path: Path) -> Suite:
    """Read and parse one suite file.

    The suite name gets the source path appended, and its declared case and
    skip counts are computed.

    Raises:
        LoadError: If the file is unreadable, empty, or not a valid suite

    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Cannot read suite file {path}: {exc}") from exc

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise LoadError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        raise LoadError(f"Empty suite file: {path}")
    if not isinstance(data, dict):
        raise LoadError(f"Invalid suite definition schema in {path}: not a mapping")

    try:
        suite = Suite.model_validate(data)
    except ValidationError as exc:
        raise LoadError(f"Invalid suite definition schema in {path}: {exc}") from exc

    suite.package = str(path)
    suite.name = f"{suite.name} [{path}]"
    suite.total = len(suite.cases)
    suite.skipped = sum(1 for case in suite.cases if case.is_skipped)
    return suite


async def load_suite(path: Path) -> Suite:
    """Load one suite file without blocking the event loop."""
    log.debug("Reading %s", path)
    return await asyncio.to_thread(parse_suite_file, path)


async def load_suites(
    paths: Sequence[Path],
    *,
    context: RunContext | None = None,
    concurrency: int | None = None,
) -> Sequence[Suite]:
    """Load suite files concurrently.

    Loading is independent of the run's parallelism: every file is loaded at
    once unless ``concurrency`` bounds it. Files that fail to load are logged
    and dropped; they do not appear in the report.

    Args:
        paths: Suite files to load
        context: Run context receiving a progress event per loaded suite
        concurrency: Maximum number of files loaded at the same time

    Returns:
        Loaded suites, in the order of ``paths``

    """
    gate = asyncio.Semaphore(concurrency) if concurrency else None

    async def _load(path: Path) -> Suite | None:
        try:
            async with gate or contextlib.nullcontext():
                suite = await load_suite(path)
        except LoadError as exc:
            log.error("Dropping suite file: %s", exc)
            return None

        if context is not None:
            context.emit(SuiteRegistered(package=suite.package, steps=suite.step_count))
        return suite

    results = await asyncio.gather(*(_load(path) for path in paths))
    suites = [suite for suite in results if suite is not None]
    log.info("Loaded %d of %d suite file(s)", len(suites), len(paths))
    return suites
