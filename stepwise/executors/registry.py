"""Registry of executors available to a run."""

import logging
from collections.abc import Sequence
from importlib.metadata import entry_points
from typing import Any

from stepwise.executors.base import Executor

ENTRY_POINT_GROUP = "stepwise.executors"

log = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Raised when a step names an executor that is not registered."""


class ExecutorRegistry:
    """Mapping from executor name to executor.

    The registry is populated before a run starts and frozen when the run
    begins. Lookups are unsynchronized, which is only safe because nothing
    mutates a frozen registry.
    """

    def __init__(self) -> None:
        self._executors: dict[str, Executor[Any]] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def names(self) -> Sequence[str]:
        return sorted(self._executors)

    def register(self, name: str, executor: Executor[Any]) -> None:
        """Bind a name to an executor.

        Raises:
            RuntimeError: If the registry is already frozen
            ValueError: If the name is already bound

        """
        if self._frozen:
            raise RuntimeError(
                f"Cannot register executor '{name}': registry is frozen"
            )
        if name in self._executors:
            raise ValueError(f"Executor '{name}' is already registered")
        self._executors[name] = executor

    def resolve(self, name: str) -> Executor[Any]:
        """Look up an executor by exact name.

        Raises:
            ResolutionError: If no executor is registered under the name

        """
        try:
            return self._executors[name]
        except KeyError:
            raise ResolutionError(
                f"Executor '{name}' not found. Available executors: {self.names}"
            ) from None

    def freeze(self) -> None:
        """Forbid further registrations."""
        self._frozen = True

    def __contains__(self, name: object) -> bool:
        return name in self._executors


def load_executor_registry() -> ExecutorRegistry:
    """Build a registry from the executors declared as entry points.

    Each entry point in the ``stepwise.executors`` group must reference a
    callable returning an executor, typically the executor class itself. The
    entry point name becomes the executor name used in step documents.
    """
    registry = ExecutorRegistry()
    for entry in entry_points(group=ENTRY_POINT_GROUP):
        factory = entry.load()
        registry.register(entry.name, factory())
        log.debug("Registered executor %s from %s", entry.name, entry.value)
    return registry
