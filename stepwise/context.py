"""Explicit state shared by the tasks of one run."""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from stepwise.assertions import AssertionEvaluator
from stepwise.config import DEFAULT_EXECUTOR
from stepwise.executors.registry import ExecutorRegistry
from stepwise.progress import ProgressEvent


@dataclass(frozen=True, kw_only=True)
class RunContext:
    """Everything loader, scheduler and runner tasks need from the run.

    Built once before any task starts and read-only afterwards, so tasks
    share it without synchronization.
    """

    registry: ExecutorRegistry
    aliases: Mapping[str, str] = field(default_factory=dict)
    evaluator: AssertionEvaluator = field(default_factory=AssertionEvaluator)
    default_executor: str = DEFAULT_EXECUTOR
    step_timeout: float | None = None
    suite_timeout: float | None = None
    progress: asyncio.Queue[ProgressEvent | None] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "aliases", MappingProxyType(dict(self.aliases)))

    def emit(self, event: ProgressEvent) -> None:
        """Send a progress event, if anyone is listening."""
        if self.progress is not None:
            self.progress.put_nowait(event)
