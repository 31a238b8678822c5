"""Models for suites, cases and the aggregated JUnit-shaped report."""

from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator

from stepwise.models.base import ResultModel
from stepwise.models.step import Step

type CaseStatus = Literal["passed", "failed", "errored", "skipped"]


class Failure(ResultModel):
    """A failure or error recorded against a case."""

    value: str = Field(default="", description="Diagnostic text")
    type: str | None = Field(default=None, description="Failure kind")
    message: str | None = Field(default=None, description="Short message")


class InnerResult(ResultModel):
    """Captured output attached to a case."""

    value: str = ""


class Property(ResultModel):
    """Key/value pair attached to a suite."""

    name: str
    value: str


class Case(ResultModel):
    """A sequence of steps with a single pass/fail/skip outcome."""

    name: str = ""
    assertions: str = ""
    classname: str = ""
    errors: list[Failure] = Field(default_factory=list)
    failures: list[Failure] = Field(default_factory=list)
    skipped: int = 0
    status: CaseStatus | None = None
    systemout: InnerResult = Field(default_factory=InnerResult)
    systemerr: InnerResult = Field(default_factory=InnerResult)
    time: str = ""
    steps: list[Step] = Field(default_factory=list)

    @field_validator("skipped", mode="before")
    @classmethod
    def _coerce_skipped(cls, value: Any) -> Any:
        # Suite files may use `skipped: true`.
        if value is None:
            return 0
        if isinstance(value, bool):
            return int(value)
        return value

    @field_validator("steps", mode="before")
    @classmethod
    def _coerce_steps(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_skipped(self) -> bool:
        """Whether the case must not be dispatched."""
        return self.skipped > 0


class Suite(ResultModel):
    """A named collection of cases loaded from one definition file."""

    name: str = ""
    package: str = ""
    disabled: int = 0
    errors: int = 0
    failures: int = 0
    hostname: str = ""
    id: str = ""
    properties: list[Property] = Field(default_factory=list)
    skipped: int = 0
    total: int = 0
    cases: list[Case] = Field(
        default_factory=list,
        validation_alias=AliasChoices("cases", "testcases", "tests"),
        serialization_alias="tests",
    )
    time: str = ""
    timestamp: str = ""

    @field_validator("cases", mode="before")
    @classmethod
    def _coerce_cases(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def step_count(self) -> int:
        """Number of steps across all cases, used for progress sizing."""
        return sum(len(case.steps) for case in self.cases)


class AggregateResult(ResultModel):
    """Run-wide totals and completed suites, in completion order."""

    total: int = 0
    ok: int = 0
    ko: int = 0
    skipped: int = 0
    test_suites: list[Suite] = Field(default_factory=list)
