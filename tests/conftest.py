"""Shared fixtures."""

from collections.abc import Generator, Mapping
from pathlib import Path
from typing import Any

import pytest
from aioresponses import aioresponses as aioresponses_cls

from stepwise.testing.suites import WriteSuiteFn, write_suite_file


@pytest.fixture
def aioresponses() -> Generator[aioresponses_cls, None, None]:
    """Intercept aiohttp requests."""
    with aioresponses_cls() as mocked:
        yield mocked


@pytest.fixture
def suites_dir(tmp_path: Path) -> Path:
    """Directory holding suite files."""
    directory = tmp_path / "suites"
    directory.mkdir()
    return directory


@pytest.fixture
def write_suite(suites_dir: Path) -> WriteSuiteFn:
    """Return a function writing suite files into ``suites_dir``."""

    def _write(filename: str, document: Mapping[str, Any]) -> Path:
        return write_suite_file(suites_dir, filename, document)

    return _write
