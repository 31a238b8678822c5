"""Sequential execution of a suite's cases and steps."""

import asyncio
import logging
import socket
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from stepwise.context import RunContext
from stepwise.executors.base import (
    ExecutionError,
    ResultDocument,
    SchemaError,
    StepContext,
    StepLogAdapter,
)
from stepwise.executors.registry import ResolutionError
from stepwise.models.report import Case, CaseStatus, Failure, InnerResult, Suite
from stepwise.models.step import STEP_TYPE_KEY, Step
from stepwise.progress import StepCompleted, SuiteFinished

log = logging.getLogger(__name__)

EXECUTION_ERROR = "ExecutionError"
TIMEOUT = "Timeout"


@dataclass(frozen=True, kw_only=True)
class SuiteRunner:
    """Runs the cases of one suite, in order, one step at a time.

    A case stops at its first failing step: the failures and errors it
    reports all come from that step, and later steps are never dispatched.
    """

    context: RunContext

    async def run_suite(self, suite: Suite) -> None:
        """Run every case of the suite and update its counters."""
        log.info("Running suite %s (%d case(s))", suite.name, len(suite.cases))
        loop = asyncio.get_running_loop()
        started = time.monotonic()
        deadline = (
            loop.time() + self.context.suite_timeout
            if self.context.suite_timeout is not None
            else None
        )

        suite.timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        suite.hostname = socket.gethostname()
        suite.failures = suite.errors = suite.skipped = 0

        for case in suite.cases:
            if case.is_skipped:
                case.status = "skipped"
            else:
                await self.run_case(suite, case, deadline)

            suite.failures += len(case.failures)
            suite.errors += len(case.errors)
            suite.skipped += case.skipped

        elapsed = time.monotonic() - started
        suite.time = f"{elapsed:.3f}"
        log.info(
            "Suite %s finished: failures=%d errors=%d skipped=%d (%.2fs)",
            suite.name,
            suite.failures,
            suite.errors,
            suite.skipped,
            elapsed,
        )
        self.context.emit(
            SuiteFinished(
                package=suite.package,
                passed=suite.failures == 0 and suite.errors == 0,
                elapsed=elapsed,
            )
        )

    async def run_case(
        self, suite: Suite, case: Case, deadline: float | None = None
    ) -> None:
        """Run the steps of a case until the first failing one."""
        case_log = StepLogAdapter(log, {"suite": suite.name, "case": case.name})
        case_log.info("start")
        started = time.monotonic()

        if deadline is not None and asyncio.get_running_loop().time() >= deadline:
            case.failures.append(
                Failure(
                    value=f"Suite timeout reached before case '{case.name}' started",
                    type=TIMEOUT,
                )
            )
        else:
            for step in case.steps:
                if not await self._run_step(suite, case, step, case_log, deadline):
                    break

        case.time = f"{time.monotonic() - started:.3f}"
        case.status = case_status(case)
        case_log.info("end: %s", case.status)

    async def _run_step(
        self,
        suite: Suite,
        case: Case,
        step: Step,
        case_log: StepLogAdapter,
        deadline: float | None,
    ) -> bool:
        """Run one step; return whether the case may continue."""
        name = str(step.get(STEP_TYPE_KEY) or self.context.default_executor)
        try:
            executor = self.context.registry.resolve(name)
            parsed = executor.parse_step(step)
        except (ResolutionError, SchemaError) as exc:
            case_log.error("%s", exc)
            case.errors.append(Failure(value=str(exc), type=type(exc).__name__))
            return False

        step_context = StepContext(log=case_log, suite=suite.name, case=case.name)
        result: ResultDocument
        scope = asyncio.timeout_at(self._step_deadline(deadline))
        try:
            async with scope:
                result = await executor.run(step_context, self.context.aliases, parsed)
        except ExecutionError as exc:
            case_log.warning("Executor %s failed: %s", name, exc)
            case.failures.append(Failure(value=str(exc), type=EXECUTION_ERROR))
            result = exc.result
        except TimeoutError as exc:
            if not scope.expired():
                # Raised by the executor itself, not by the step deadline.
                case_log.warning("Executor %s failed: %r", name, exc)
                case.failures.append(
                    Failure(
                        value=f"Executor '{name}' failed: {exc!r}",
                        type=EXECUTION_ERROR,
                    )
                )
                result = {}
            else:
                case_log.warning("Executor %s timed out", name)
                case.failures.append(
                    Failure(
                        value=f"Step with executor '{name}' timed out", type=TIMEOUT
                    )
                )
                self.context.emit(StepCompleted(package=suite.package, case=case.name))
                return False
        except Exception as exc:
            case_log.error("Executor %s crashed: %r", name, exc, exc_info=exc)
            case.failures.append(
                Failure(
                    value=f"Executor '{name}' crashed: {type(exc).__name__}: {exc}",
                    type=EXECUTION_ERROR,
                    message=type(exc).__name__,
                )
            )
            self.context.emit(StepCompleted(package=suite.package, case=case.name))
            return False

        case_log.debug("result: %s", result)
        case.failures.extend(
            self.context.evaluator.evaluate(
                result, parsed.assertions, executor.default_assertions()
            )
        )
        capture_output(case, result)
        self.context.emit(StepCompleted(package=suite.package, case=case.name))
        return not case.failures

    def _step_deadline(self, suite_deadline: float | None) -> float | None:
        if self.context.step_timeout is None:
            return suite_deadline
        step_deadline = asyncio.get_running_loop().time() + self.context.step_timeout
        if suite_deadline is None:
            return step_deadline
        return min(step_deadline, suite_deadline)


def case_status(case: Case) -> CaseStatus:
    """Terminal status of a case that was run."""
    if case.errors:
        return "errored"
    if case.failures:
        return "failed"
    return "passed"


def capture_output(case: Case, result: ResultDocument) -> None:
    """Append a step's captured output to the case."""
    for key in ("systemout", "systemerr"):
        output = result.get(key)
        if not isinstance(output, str) or not output:
            continue
        current: InnerResult = getattr(case, key)
        current.value = f"{current.value}\n{output}" if current.value else output
