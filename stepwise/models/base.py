"""Base model configuration for all data structures."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base model with standard configuration."""

    model_config = ConfigDict(frozen=True)


class ResultModel(BaseModel):
    """Base model for report entities.

    Report entities are mutated while their suite runs, so unlike ``Model``
    they are not frozen.
    """

    model_config = ConfigDict(extra="ignore")
