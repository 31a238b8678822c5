"""Shell executor implementation."""

import asyncio
import contextlib
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import ClassVar

from stepwise.executors.base import (
    ExecutionError,
    Executor,
    ResultDocument,
    StepContext,
    apply_aliases,
)
from stepwise.executors.shell.models import ShellStep
from stepwise.models.step import StepSchema


@dataclass(frozen=True, kw_only=True)
class ShellExecutor(Executor[ShellStep]):
    """Run a step's script with the system shell.

    A non-zero exit code is not an execution error: it is reported in the
    result and caught by the default ``result.code ShouldEqual 0`` assertion.
    """

    step_model: ClassVar[type[StepSchema]] = ShellStep

    async def run(
        self,
        context: StepContext,
        aliases: Mapping[str, str],
        step: ShellStep,
    ) -> ResultDocument:
        """Run the script and capture its exit code and output."""
        script = apply_aliases(step.script, aliases)
        context.log.debug("Running script: %s", script)

        started = time.monotonic()
        try:
            process = await asyncio.create_subprocess_shell(
                script,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ExecutionError(f"Cannot start script: {exc}") from exc

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            # Deadline reached; do not leave the script running.
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise

        result: ResultDocument = {
            "code": process.returncode,
            "systemout": stdout.decode(errors="replace").rstrip("\n"),
            "systemerr": stderr.decode(errors="replace").rstrip("\n"),
            "timeseconds": round(time.monotonic() - started, 3),
        }
        context.log.debug("Script exited with code %s", process.returncode)
        return result

    def default_assertions(self) -> Sequence[str]:
        """Scripts are expected to exit successfully."""
        return ("result.code ShouldEqual 0",)
