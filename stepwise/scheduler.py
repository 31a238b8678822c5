"""Scheduler running suites concurrently under a parallelism cap."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from stepwise.context import RunContext
from stepwise.models.report import Suite
from stepwise.runner import SuiteRunner

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class Scheduler:
    """Runs suites concurrently, at most ``parallel`` at a time."""

    context: RunContext
    parallel: int = 1

    async def run(
        self,
        suites: Sequence[Suite],
        completed: asyncio.Queue[Suite | None],
    ) -> None:
        """Run all suites and forward each one to ``completed`` when done.

        Every suite gets its own task, which waits for a free slot, runs the
        suite to completion, frees the slot, then forwards the suite. Suites
        are therefore forwarded in completion order, not input order.

        Args:
            suites: Loaded suites to run
            completed: Queue receiving every suite once it has run

        """
        if not suites:
            log.info("No suites to run")
            return

        parallel = max(1, self.parallel)
        gate = asyncio.Semaphore(parallel)
        runner = SuiteRunner(context=self.context)

        log.info("Running %d suite(s) with parallel=%d", len(suites), parallel)
        async with asyncio.TaskGroup() as group:
            for suite in suites:
                group.create_task(self._run_suite(suite, gate, runner, completed))
        log.info("Suite execution completed")

    async def _run_suite(
        self,
        suite: Suite,
        gate: asyncio.Semaphore,
        runner: SuiteRunner,
        completed: asyncio.Queue[Suite | None],
    ) -> None:
        """Run one suite once admitted, then forward it."""
        async with gate:
            log.debug("Suite admitted: %s", suite.name)
            try:
                await runner.run_suite(suite)
            except Exception as exc:
                # Counted as a failure so the suite earns no ok credit.
                log.error(
                    "Suite execution failed: %s: %s", suite.name, exc, exc_info=exc
                )
                suite.failures += 1
        await completed.put(suite)
