"""Aggregation of completed suites into run-wide totals."""

import asyncio
import logging
from dataclasses import dataclass, field

from stepwise.models.report import AggregateResult, Suite

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class ResultAggregator:
    """Folds completed suites into an ``AggregateResult``.

    Only the task running ``consume`` touches the result, so it needs no
    lock.
    """

    result: AggregateResult = field(default_factory=AggregateResult)

    def add(self, suite: Suite) -> None:
        """Fold one completed suite into the totals.

        A suite with any failure contributes its failure count to ``ko`` and
        nothing to ``ok``, however many of its cases passed.
        """
        if suite.failures > 0:
            self.result.ko += suite.failures
        else:
            self.result.ok += len(suite.cases)
        self.result.skipped += suite.skipped
        self.result.total = self.result.ok + self.result.ko + self.result.skipped
        self.result.test_suites.append(suite)

    async def consume(self, queue: asyncio.Queue[Suite | None]) -> AggregateResult:
        """Fold suites from the queue until the ``None`` sentinel."""
        while (suite := await queue.get()) is not None:
            log.debug(
                "Aggregating suite %s: failures=%d skipped=%d",
                suite.name,
                suite.failures,
                suite.skipped,
            )
            self.add(suite)
        return self.result
