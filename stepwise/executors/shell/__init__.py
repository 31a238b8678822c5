"""Shell executor module."""

from stepwise.executors.shell.executor import ShellExecutor
from stepwise.executors.shell.models import ShellStep

__all__ = ["ShellExecutor", "ShellStep"]
