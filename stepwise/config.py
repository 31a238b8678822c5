"""Configuration for a run."""

from collections.abc import Mapping, Sequence
from typing import Any, Literal

from pydantic import BaseModel, Field, PositiveFloat, PositiveInt, field_validator

type DetailLevel = Literal["low", "medium", "high"]

DEFAULT_EXECUTOR = "exec"


class RunConfig(BaseModel):
    """Configuration for a run."""

    path: str = "."
    aliases: Mapping[str, str] = Field(default_factory=dict)
    parallel: int = 1
    detail_level: DetailLevel = "medium"
    step_timeout: PositiveFloat | None = None
    suite_timeout: PositiveFloat | None = None
    # Bounds concurrent suite file loading; None loads every file at once
    load_concurrency: PositiveInt | None = None
    default_executor: str = DEFAULT_EXECUTOR

    @field_validator("path")
    @classmethod
    def _require_path(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("path must not be empty")
        return value

    @field_validator("aliases", mode="before")
    @classmethod
    def _parse_aliases(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return parse_aliases(value)
        return value

    @field_validator("parallel")
    @classmethod
    def _clamp_parallel(cls, value: int) -> int:
        return max(1, value)


def parse_aliases(entries: Sequence[str]) -> dict[str, str]:
    """Parse ``name:value`` alias entries into an alias table.

    The value is everything after the first colon. Entries without a colon
    are ignored.
    """
    aliases: dict[str, str] = {}
    for entry in entries:
        name, separator, value = entry.partition(":")
        if not separator or not name:
            continue
        aliases[name] = value
    return aliases
