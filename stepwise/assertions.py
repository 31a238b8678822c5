"""Evaluation of step assertions against executor results.

An assertion is a single line of the form ``<path> <Operator> [args...]``,
for example ``result.code ShouldEqual 0``. The path is a dotted lookup into
the result document; the leading ``result.`` segment is optional.
"""

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from stepwise.models.report import Failure

log = logging.getLogger(__name__)

ASSERTION_FAILURE = "AssertionFailure"

_MISSING = object()


@dataclass(frozen=True, kw_only=True)
class Assertion:
    """A parsed assertion line."""

    text: str
    path: tuple[str, ...]
    operator: str
    args: tuple[str, ...]

    @property
    def expected(self) -> str:
        return " ".join(self.args)


def parse_assertion(text: str) -> Assertion:
    """Split an assertion line into path, operator and arguments.

    Raises:
        ValueError: If the line has no operator

    """
    parts = text.split()
    if len(parts) < 2:
        raise ValueError(f"Invalid assertion '{text}': expected '<path> <Operator>'")

    segments = tuple(parts[0].split("."))
    if len(segments) > 1 and segments[0].lower() == "result":
        segments = segments[1:]

    return Assertion(
        text=text,
        path=segments,
        operator=parts[1],
        args=tuple(parts[2:]),
    )


def format_value(value: Any) -> str:
    """Render a result value the way suite files write expected values."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def lookup(document: Any, path: Sequence[str]) -> Any:
    """Resolve a dotted path in a result document, or return ``_MISSING``."""
    current = document
    for segment in path:
        if isinstance(current, Mapping):
            if segment in current:
                current = current[segment]
                continue
            matches = [key for key in current if str(key).lower() == segment.lower()]
            if not matches:
                return _MISSING
            current = current[matches[0]]
        elif isinstance(current, (list, tuple)):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return _MISSING
        else:
            return _MISSING
    return current


def _as_number(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a number") from None


def _compare(
    predicate: Callable[[float, float], bool], description: str
) -> Callable[[Any, Assertion], str | None]:
    def check(actual: Any, assertion: Assertion) -> str | None:
        left = _as_number(format_value(actual))
        right = _as_number(assertion.expected)
        if predicate(left, right):
            return None
        return f"expected a value {description} {assertion.expected}, got {left:g}"

    return check


def _should_equal(actual: Any, assertion: Assertion) -> str | None:
    if format_value(actual) == assertion.expected:
        return None
    return f"expected '{assertion.expected}', got '{format_value(actual)}'"


def _should_not_equal(actual: Any, assertion: Assertion) -> str | None:
    if format_value(actual) != assertion.expected:
        return None
    return f"expected a value different from '{assertion.expected}'"


def _should_contain(actual: Any, assertion: Assertion) -> str | None:
    if assertion.expected in format_value(actual):
        return None
    return f"expected '{format_value(actual)}' to contain '{assertion.expected}'"


def _should_not_contain(actual: Any, assertion: Assertion) -> str | None:
    if assertion.expected not in format_value(actual):
        return None
    return f"expected '{format_value(actual)}' not to contain '{assertion.expected}'"


def _should_start_with(actual: Any, assertion: Assertion) -> str | None:
    if format_value(actual).startswith(assertion.expected):
        return None
    return f"expected '{format_value(actual)}' to start with '{assertion.expected}'"


def _should_end_with(actual: Any, assertion: Assertion) -> str | None:
    if format_value(actual).endswith(assertion.expected):
        return None
    return f"expected '{format_value(actual)}' to end with '{assertion.expected}'"


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, Mapping, list, tuple)):
        return len(value) == 0
    return False


def _should_be_empty(actual: Any, assertion: Assertion) -> str | None:
    if _is_empty(actual):
        return None
    return f"expected an empty value, got '{format_value(actual)}'"


def _should_not_be_empty(actual: Any, assertion: Assertion) -> str | None:
    if not _is_empty(actual):
        return None
    return "expected a non-empty value"


OPERATORS: Mapping[str, Callable[[Any, Assertion], str | None]] = {
    "ShouldEqual": _should_equal,
    "ShouldNotEqual": _should_not_equal,
    "ShouldContainSubstring": _should_contain,
    "ShouldNotContainSubstring": _should_not_contain,
    "ShouldStartWith": _should_start_with,
    "ShouldEndWith": _should_end_with,
    "ShouldBeEmpty": _should_be_empty,
    "ShouldNotBeEmpty": _should_not_be_empty,
    "ShouldBeGreaterThan": _compare(lambda a, b: a > b, "greater than"),
    "ShouldBeGreaterThanOrEqualTo": _compare(
        lambda a, b: a >= b, "greater than or equal to"
    ),
    "ShouldBeLessThan": _compare(lambda a, b: a < b, "less than"),
    "ShouldBeLessThanOrEqualTo": _compare(
        lambda a, b: a <= b, "less than or equal to"
    ),
}


def merge_assertions(
    declared: Sequence[str], defaults: Sequence[str]
) -> Sequence[str]:
    """Combine an executor's default assertions with a step's own.

    Defaults come first. A default is dropped when the step declares an
    assertion on the same path, so a step can override what "success" means
    for its executor.
    """
    declared_paths = set()
    for text in declared:
        try:
            declared_paths.add(_path_key(parse_assertion(text)))
        except ValueError:
            continue

    merged: list[str] = []
    for text in defaults:
        try:
            if _path_key(parse_assertion(text)) in declared_paths:
                continue
        except ValueError:
            pass
        merged.append(text)
    merged.extend(declared)
    return merged


def _path_key(assertion: Assertion) -> tuple[str, ...]:
    return tuple(segment.lower() for segment in assertion.path)


class AssertionEvaluator:
    """Checks a step's result against its assertions."""

    def evaluate(
        self,
        result: Mapping[str, Any],
        declared: Sequence[str],
        defaults: Sequence[str],
    ) -> list[Failure]:
        """Return one failure per unmet assertion.

        Args:
            result: Result document returned by the executor
            declared: Assertions declared by the step
            defaults: Default assertions of the executor

        Returns:
            Failures in assertion order, empty when all assertions hold

        """
        failures: list[Failure] = []
        for text in merge_assertions(declared, defaults):
            if (message := self.check(result, text)) is not None:
                log.debug("Assertion failed: %s (%s)", text, message)
                failures.append(
                    Failure(
                        value=f"Assertion '{text}' failed: {message}",
                        type=ASSERTION_FAILURE,
                        message=message,
                    )
                )
        return failures

    def check(self, result: Mapping[str, Any], text: str) -> str | None:
        """Check a single assertion, returning a message when it is unmet."""
        try:
            assertion = parse_assertion(text)
        except ValueError as exc:
            return str(exc)

        operator = OPERATORS.get(assertion.operator)
        if operator is None:
            return f"unknown operator '{assertion.operator}'"

        actual = lookup(result, assertion.path)
        if actual is _MISSING:
            return f"key '{'.'.join(assertion.path)}' not found in result"

        try:
            return operator(actual, assertion)
        except ValueError as exc:
            return str(exc)
