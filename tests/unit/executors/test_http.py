"""Tests for the HTTP executor."""

import pytest
from aioresponses import aioresponses as aioresponses_cls
from yarl import URL

from stepwise.executors.base import ExecutionError, SchemaError, StepContext
from stepwise.executors.http import HttpExecutor, HttpStep

API_BASE_URL = "http://api.test"


async def test_returns_status_and_json_body(
    step_context: StepContext, aioresponses: aioresponses_cls
) -> None:
    """Returns status code, body and decoded JSON body."""
    aioresponses.get(f"{API_BASE_URL}/health", status=200, payload={"status": "up"})

    result = await HttpExecutor().run(
        step_context, {}, HttpStep(url=API_BASE_URL, path="/health")
    )

    assert result["statuscode"] == 200
    assert result["bodyjson"] == {"status": "up"}
    assert '"status"' in result["body"]
    assert result["timeseconds"] >= 0


async def test_plain_text_body_has_no_json(
    step_context: StepContext, aioresponses: aioresponses_cls
) -> None:
    """Omits bodyjson when the body is not JSON."""
    aioresponses.get(f"{API_BASE_URL}/", status=503, body="unavailable")

    result = await HttpExecutor().run(step_context, {}, HttpStep(url=f"{API_BASE_URL}/"))

    assert result["statuscode"] == 503
    assert result["body"] == "unavailable"
    assert "bodyjson" not in result


async def test_sends_method_body_and_headers(
    step_context: StepContext, aioresponses: aioresponses_cls
) -> None:
    """Sends the declared method, body and headers."""
    url = f"{API_BASE_URL}/items"
    aioresponses.post(url, status=201, payload={"id": 1})

    result = await HttpExecutor().run(
        step_context,
        {},
        HttpStep(
            method="POST",
            url=API_BASE_URL,
            path="/items",
            body='{"name": "a"}',
            headers={"Content-Type": "application/json"},
        ),
    )

    assert result["statuscode"] == 201
    call = aioresponses.requests[("POST", URL(url))][0]
    assert call.kwargs["data"] == '{"name": "a"}'
    assert call.kwargs["headers"] == {"Content-Type": "application/json"}


async def test_substitutes_aliases_in_url(
    step_context: StepContext, aioresponses: aioresponses_cls
) -> None:
    """Replaces an alias used as the URL."""
    aioresponses.get(f"{API_BASE_URL}/ping", status=200, body="pong")

    result = await HttpExecutor().run(
        step_context, {"api": API_BASE_URL}, HttpStep(url="api", path="/ping")
    )

    assert result["body"] == "pong"


async def test_connection_error(
    step_context: StepContext, aioresponses: aioresponses_cls
) -> None:
    """Transport errors raise ExecutionError."""
    with pytest.raises(ExecutionError, match="HTTP request to"):
        await HttpExecutor().run(
            step_context, {}, HttpStep(url=f"{API_BASE_URL}/unmocked")
        )


def test_default_assertions() -> None:
    """Expects a 200 status code."""
    assert list(HttpExecutor().default_assertions()) == [
        "result.statuscode ShouldEqual 200"
    ]


def test_parse_step_rejects_unknown_method() -> None:
    """Unknown HTTP methods are schema errors."""
    with pytest.raises(SchemaError):
        HttpExecutor().parse_step({"type": "http", "url": "x", "method": "FETCH"})
