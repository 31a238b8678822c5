"""Models for step documents dispatched to executors."""

from collections.abc import Sequence
from typing import Any

from pydantic import ConfigDict, Field

from stepwise.models.base import Model

type Step = dict[str, Any]

STEP_TYPE_KEY = "type"


class StepSchema(Model):
    """Fields shared by every executor's step schema.

    Executors extend this with their own fields. Unknown keys are rejected so
    that a typo in a suite file surfaces as a schema error instead of being
    silently ignored.
    """

    model_config = ConfigDict(extra="forbid")

    type: str | None = Field(default=None, description="Executor name")
    assertions: Sequence[str] = Field(
        default_factory=tuple, description="Assertions declared by the step"
    )
