"""Fixtures for executor tests."""

import logging

import pytest

from stepwise.executors.base import StepContext, StepLogAdapter


@pytest.fixture
def step_context() -> StepContext:
    """Create step context for a suite 'suite' and case 'case'."""
    log = StepLogAdapter(logging.getLogger(__name__), {"suite": "suite", "case": "case"})
    return StepContext(log=log, suite="suite", case="case")
