"""Abstract base class for step executors."""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, cast

from pydantic import ValidationError

from stepwise.models.step import STEP_TYPE_KEY, Step, StepSchema

type ResultDocument = dict[str, Any]


class SchemaError(Exception):
    """Raised when a step document does not match its executor's schema."""


class ExecutionError(Exception):
    """Raised by an executor when a step could not be carried out.

    The partial result, if any, is still evaluated against the step's
    assertions.
    """

    def __init__(self, message: str, result: Mapping[str, Any] | None = None):
        super().__init__(message)
        self.result: ResultDocument = dict(result or {})


class StepLogAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Prefix log messages with the suite and case being run."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = self.extra or {}
        return f"[{extra.get('suite')}] [{extra.get('case')}] {msg}", kwargs


@dataclass(frozen=True, kw_only=True)
class StepContext:
    """Information about the step being dispatched."""

    log: StepLogAdapter
    suite: str
    case: str


@dataclass(frozen=True, kw_only=True)
class Executor[StepT: StepSchema](ABC):
    """Abstract base for step executors.

    Generic type StepT is the executor's own step schema. The open step
    document is decoded into it by ``parse_step`` before ``run`` is called.
    """

    step_model: ClassVar[type[StepSchema]] = StepSchema

    def parse_step(self, step: Step) -> StepT:
        """Decode an open step document against this executor's schema.

        Raises:
            SchemaError: If fields are missing, malformed or unknown

        """
        try:
            return cast(StepT, self.step_model.model_validate(step))
        except ValidationError as exc:
            raise SchemaError(
                f"Invalid step for executor '{step.get(STEP_TYPE_KEY)}': {exc}"
            ) from exc

    @abstractmethod
    async def run(
        self,
        context: StepContext,
        aliases: Mapping[str, str],
        step: StepT,
    ) -> ResultDocument:
        """Perform the step and return its result document.

        Args:
            context: Suite/case information and a logger for the step
            aliases: Read-only alias table for name substitution
            step: Decoded step

        Returns:
            Result document checked by the assertion evaluator

        Raises:
            ExecutionError: If the step could not be carried out

        """

    def default_assertions(self) -> Sequence[str]:
        """Assertions applied to every step this executor handles."""
        return ()


def apply_aliases(text: str, aliases: Mapping[str, str]) -> str:
    """Replace whole-word occurrences of alias names with their values.

    Substitution is a single pass, so alias values are never re-expanded.
    """
    if not aliases:
        return text

    names = sorted(aliases, key=len, reverse=True)
    pattern = re.compile(
        r"(?<![\w.-])(" + "|".join(re.escape(name) for name in names) + r")(?![\w.-])"
    )
    return pattern.sub(lambda match: aliases[match.group(1)], text)
