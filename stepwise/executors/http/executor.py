"""HTTP executor implementation."""

import json
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar

import aiohttp

from stepwise.executors.base import (
    ExecutionError,
    Executor,
    ResultDocument,
    StepContext,
    apply_aliases,
)
from stepwise.executors.http.models import HttpStep
from stepwise.models.step import StepSchema


@dataclass(frozen=True, kw_only=True)
class HttpExecutor(Executor[HttpStep]):
    """Send a step's HTTP request and capture the response."""

    step_model: ClassVar[type[StepSchema]] = HttpStep

    async def run(
        self,
        context: StepContext,
        aliases: Mapping[str, str],
        step: HttpStep,
    ) -> ResultDocument:
        """Send the request and return status, headers and body."""
        url = apply_aliases(step.url, aliases) + step.path
        context.log.debug("Sending request: method=%s, url=%s", step.method, url)

        started = time.monotonic()
        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(
                    step.method,
                    url,
                    data=step.body,
                    headers=dict(step.headers),
                ) as response:
                    body = await response.text()
                    result: ResultDocument = {
                        "statuscode": response.status,
                        "headers": dict(response.headers),
                        "body": body,
                    }
        except (aiohttp.ClientError, ValueError) as exc:
            raise ExecutionError(f"HTTP request to {url} failed: {exc}") from exc

        result["timeseconds"] = round(time.monotonic() - started, 3)
        if (body_json := parse_json_body(result["body"])) is not None:
            result["bodyjson"] = body_json

        context.log.debug("Response status: %s", result["statuscode"])
        return result

    def default_assertions(self) -> Sequence[str]:
        """Requests are expected to answer 200 OK."""
        return ("result.statuscode ShouldEqual 200",)


def parse_json_body(body: str) -> Any | None:
    """Decode a response body as JSON, or return None if it is not JSON."""
    if not body.strip():
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None
