"""Entry point running every suite found under a path."""

import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from pydantic import ValidationError

from stepwise.aggregator import ResultAggregator
from stepwise.assertions import AssertionEvaluator
from stepwise.config import DEFAULT_EXECUTOR, RunConfig
from stepwise.context import RunContext
from stepwise.executors.registry import ExecutorRegistry, load_executor_registry
from stepwise.models.report import AggregateResult, Suite
from stepwise.progress import ProgressEvent, ProgressReporter
from stepwise.scheduler import Scheduler
from stepwise.suite_loader import check_pattern, discover_suite_files, load_suites

log = logging.getLogger(__name__)


class SetupError(Exception):
    """Raised when a run cannot start, before any suite is executed."""


async def process(
    path: str | Path,
    aliases: Sequence[str] = (),
    parallel: int = 1,
    detail_level: str = "medium",
    *,
    step_timeout: float | None = None,
    suite_timeout: float | None = None,
    load_concurrency: int | None = None,
    default_executor: str = DEFAULT_EXECUTOR,
    registry: ExecutorRegistry | None = None,
    evaluator: AssertionEvaluator | None = None,
    progress_stream: TextIO | None = None,
) -> AggregateResult:
    """Load and run all suites designated by ``path``.

    Args:
        path: Suite file, directory of suite files, or glob pattern
        aliases: Alias entries in ``name:value`` form
        parallel: Maximum number of suites running at once (at least 1)
        detail_level: Progress detail level: low, medium or high
        step_timeout: Deadline in seconds for each executor call
        suite_timeout: Deadline in seconds for each suite
        load_concurrency: Maximum number of suite files loaded at once
        default_executor: Executor used by steps without a ``type``
        registry: Executors to use; loaded from entry points when omitted
        evaluator: Assertion evaluator; the built-in one when omitted
        progress_stream: Where progress lines go; stderr when omitted

    Returns:
        Aggregated result of all suites that could be loaded

    Raises:
        SetupError: If the configuration or the path pattern is invalid

    """
    try:
        config = RunConfig(
            path=str(path),
            aliases=list(aliases),
            parallel=parallel,
            detail_level=detail_level,  # type: ignore[arg-type]
            step_timeout=step_timeout,
            suite_timeout=suite_timeout,
            load_concurrency=load_concurrency,
            default_executor=default_executor,
        )
    except ValidationError as exc:
        raise SetupError(f"Invalid run configuration: {exc}") from exc

    if not Path(config.path).is_dir():
        try:
            check_pattern(config.path)
        except ValueError as exc:
            raise SetupError(str(exc)) from exc

    return await execute(
        config,
        registry=registry if registry is not None else load_executor_registry(),
        evaluator=evaluator,
        progress_stream=progress_stream,
    )


async def execute(
    config: RunConfig,
    *,
    registry: ExecutorRegistry,
    evaluator: AssertionEvaluator | None = None,
    progress_stream: TextIO | None = None,
) -> AggregateResult:
    """Run a validated configuration.

    The registry is frozen before any suite starts.
    """
    log.info("Start processing path %s", config.path)
    registry.freeze()

    progress: asyncio.Queue[ProgressEvent | None] = asyncio.Queue()
    context = RunContext(
        registry=registry,
        aliases=config.aliases,
        evaluator=evaluator or AssertionEvaluator(),
        default_executor=config.default_executor,
        step_timeout=config.step_timeout,
        suite_timeout=config.suite_timeout,
        progress=progress,
    )
    reporter = ProgressReporter(
        detail_level=config.detail_level, stream=progress_stream or sys.stderr
    )
    progress_task = asyncio.create_task(reporter.consume(progress))

    completed: asyncio.Queue[Suite | None] = asyncio.Queue()
    aggregator = ResultAggregator()
    aggregate_task = asyncio.create_task(aggregator.consume(completed))

    try:
        files = discover_suite_files(config.path)
        log.debug("Found %d suite file(s)", len(files))
        suites = await load_suites(
            files, context=context, concurrency=config.load_concurrency
        )
        await Scheduler(context=context, parallel=config.parallel).run(
            suites, completed
        )
        await completed.put(None)
        result = await aggregate_task
    finally:
        if not aggregate_task.done():
            aggregate_task.cancel()
        await progress.put(None)
        await progress_task

    log.info("End processing path %s", config.path)
    return result
