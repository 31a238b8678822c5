"""Progress reporting for running suites.

All display state is owned by a single ``ProgressReporter`` task. Loader,
runner and scheduler tasks only enqueue events, so no lock is needed.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TextIO

from stepwise.config import DetailLevel

log = logging.getLogger(__name__)

PACKAGE_WIDTH = 47

STATUS_SYMBOLS = {
    "running": "⚙",
    "passed": "✅",
    "failed": "❌",
}


@dataclass(frozen=True, kw_only=True)
class SuiteRegistered:
    """A suite was loaded and will be run."""

    package: str
    steps: int


@dataclass(frozen=True, kw_only=True)
class StepCompleted:
    """A step of a suite finished."""

    package: str
    case: str


@dataclass(frozen=True, kw_only=True)
class SuiteFinished:
    """All cases of a suite finished."""

    package: str
    passed: bool
    elapsed: float


type ProgressEvent = SuiteRegistered | StepCompleted | SuiteFinished


@dataclass(kw_only=True)
class SuiteProgress:
    """Step counters of one suite."""

    steps: int
    done: int = 0


def right_pad(text: str, width: int = PACKAGE_WIDTH) -> str:
    """Pad or truncate text to exactly ``width`` characters."""
    return (text + " " * width)[:width]


class ProgressReporter:
    """Single consumer of progress events that writes progress lines."""

    def __init__(self, detail_level: DetailLevel, stream: TextIO) -> None:
        self.detail_level = detail_level
        self.stream = stream
        self.suites: dict[str, SuiteProgress] = {}

    async def consume(self, queue: asyncio.Queue[ProgressEvent | None]) -> None:
        """Handle events until the ``None`` sentinel is received."""
        while (event := await queue.get()) is not None:
            self.handle(event)

    def handle(self, event: ProgressEvent) -> None:
        if isinstance(event, SuiteRegistered):
            self.suites[event.package] = SuiteProgress(steps=event.steps)
            if self.detail_level != "low":
                self._write(
                    f"{STATUS_SYMBOLS['running']} {right_pad(event.package)} "
                    f"{event.steps} step(s)"
                )
        elif isinstance(event, StepCompleted):
            progress = self._progress(event.package)
            progress.done += 1
            if self.detail_level == "high":
                self._write(
                    f"  {right_pad(event.package)} {event.case}: "
                    f"{progress.done}/{progress.steps}"
                )
        elif isinstance(event, SuiteFinished):
            symbol = STATUS_SYMBOLS["passed" if event.passed else "failed"]
            line = f"{symbol} {right_pad(event.package)} {event.elapsed:.2f}s"
            if self.detail_level != "low":
                progress = self._progress(event.package)
                line += f" ({progress.done}/{progress.steps} steps)"
            self._write(line)

    def _progress(self, package: str) -> SuiteProgress:
        if package not in self.suites:
            log.debug("Progress event for unregistered suite %s", package)
            self.suites[package] = SuiteProgress(steps=0)
        return self.suites[package]

    def _write(self, line: str) -> None:
        self.stream.write(line + "\n")
        self.stream.flush()
