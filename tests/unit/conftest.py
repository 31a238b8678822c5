"""Fixtures for unit tests."""

import pytest

from stepwise.context import RunContext
from stepwise.executors.registry import ExecutorRegistry
from stepwise.testing.executors import RecordingExecutor


@pytest.fixture
def executor() -> RecordingExecutor:
    """Create recording executor."""
    return RecordingExecutor()


@pytest.fixture
def registry(executor: RecordingExecutor) -> ExecutorRegistry:
    """Create registry with the recording executor bound to 'fake'."""
    registry = ExecutorRegistry()
    registry.register("fake", executor)
    return registry


@pytest.fixture
def context(registry: ExecutorRegistry) -> RunContext:
    """Create run context defaulting to the recording executor."""
    return RunContext(registry=registry, default_executor="fake")
