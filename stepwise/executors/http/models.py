"""Step schema for the HTTP executor."""

from collections.abc import Mapping
from typing import Literal

from pydantic import Field

from stepwise.models.step import StepSchema

type HttpMethod = Literal["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class HttpStep(StepSchema):
    """An HTTP request."""

    method: HttpMethod = Field(default="GET", description="Request method")
    url: str = Field(..., description="Base URL, aliases are substituted")
    path: str = Field(default="", description="Path appended to the URL")
    body: str | None = Field(default=None, description="Raw request body")
    headers: Mapping[str, str] = Field(
        default_factory=dict, description="Request headers"
    )
