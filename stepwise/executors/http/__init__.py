"""HTTP executor module."""

from stepwise.executors.http.executor import HttpExecutor
from stepwise.executors.http.models import HttpStep

__all__ = ["HttpExecutor", "HttpStep"]
