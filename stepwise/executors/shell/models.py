"""Step schema for the shell executor."""

from pydantic import Field

from stepwise.models.step import StepSchema


class ShellStep(StepSchema):
    """A shell script run in a subprocess."""

    script: str = Field(..., description="Script passed to the system shell")
