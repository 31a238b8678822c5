"""Helpers for writing suite files in tests."""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

import yaml

from stepwise.models.report import Case, Suite


class WriteSuiteFn(Protocol):
    """Protocol for suite file creation function."""

    def __call__(self, filename: str, document: Mapping[str, Any]) -> Path:
        """Write a suite document as YAML and return its path."""


def write_suite_file(
    directory: Path, filename: str, document: Mapping[str, Any]
) -> Path:
    """Write a suite document as YAML."""
    path = directory / filename
    path.write_text(yaml.safe_dump(dict(document), sort_keys=False))
    return path


def suite_document(name: str, cases: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Build a suite file document."""
    return {"name": name, "testcases": [dict(case) for case in cases]}


def case_document(
    name: str, steps: Sequence[Mapping[str, Any]], *, skipped: bool = False
) -> dict[str, Any]:
    """Build a case entry of a suite file document."""
    document: dict[str, Any] = {"name": name, "steps": [dict(step) for step in steps]}
    if skipped:
        document["skipped"] = True
    return document


def build_suite(name: str, cases: Sequence[Case]) -> Suite:
    """Build an in-memory suite as the loader would."""
    package = f"{name}.yml"
    return Suite(
        name=f"{name} [{package}]",
        package=package,
        cases=list(cases),
        total=len(cases),
        skipped=sum(1 for case in cases if case.is_skipped),
    )


def build_case(
    name: str, steps: Sequence[Mapping[str, Any]], *, skipped: bool = False
) -> Case:
    """Build an in-memory case."""
    return Case(name=name, steps=[dict(step) for step in steps], skipped=int(skipped))
