"""Serialization of aggregated results to JUnit XML, JSON and YAML."""

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from stepwise.models.report import AggregateResult, Case, Failure, Suite

REPORT_FORMATS: Sequence[str] = ("xml", "json", "yaml", "yml")
XML_HEADER = '<?xml version="1.0" encoding="utf-8"?>\n'

# Characters outside the XML 1.0 Char production.
_INVALID_XML_CHARS = re.compile(
    "[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)

log = logging.getLogger(__name__)


class ReportWriteError(Exception):
    """Raised when the report cannot be written."""


def to_document(result: AggregateResult) -> dict[str, Any]:
    """Plain document shared by the JSON and YAML forms."""
    return result.model_dump(mode="json", by_alias=True)


def to_json(result: AggregateResult, indent: int | None = None) -> str:
    return result.model_dump_json(by_alias=True, indent=indent)


def from_json(data: str | bytes) -> AggregateResult:
    """Decode a JSON report back into an ``AggregateResult``."""
    return AggregateResult.model_validate_json(data)


def to_yaml(result: AggregateResult) -> str:
    return yaml.safe_dump(to_document(result), sort_keys=False, allow_unicode=True)


def to_xml(result: AggregateResult) -> str:
    """Encode results as a JUnit ``<testsuites>`` document.

    Totals have no JUnit counterpart and are not part of the XML form.
    """
    root = ET.Element("testsuites")
    for suite in result.test_suites:
        _suite_element(root, suite)
    return XML_HEADER + ET.tostring(root, encoding="unicode")


def xml_safe(text: str) -> str:
    """Replace characters XML cannot represent, such as ANSI escapes."""
    return _INVALID_XML_CHARS.sub("\ufffd", text)


def _attributes(
    required: Mapping[str, Any], optional: Mapping[str, Any]
) -> dict[str, str]:
    # Optional attributes are omitted when zero or empty.
    attributes = {key: xml_safe(str(value)) for key, value in required.items()}
    attributes.update(
        {
            key: xml_safe(str(value))
            for key, value in optional.items()
            if value not in (None, "", 0)
        }
    )
    return attributes


def _suite_element(parent: ET.Element, suite: Suite) -> None:
    element = ET.SubElement(
        parent,
        "testsuite",
        _attributes(
            {"name": suite.name, "tests": suite.total},
            {
                "disabled": suite.disabled,
                "errors": suite.errors,
                "failures": suite.failures,
                "hostname": suite.hostname,
                "id": suite.id,
                "package": suite.package,
                "skipped": suite.skipped,
                "time": suite.time,
                "timestamp": suite.timestamp,
            },
        ),
    )
    for case in suite.cases:
        _case_element(element, case)


def _case_element(parent: ET.Element, case: Case) -> None:
    element = ET.SubElement(
        parent,
        "testcase",
        _attributes(
            {"name": case.name},
            {
                "assertions": case.assertions,
                "classname": case.classname,
                "skipped": case.skipped,
                "status": case.status,
                "time": case.time,
            },
        ),
    )
    for error in case.errors:
        _failure_element(element, "error", error)
    for failure in case.failures:
        _failure_element(element, "failure", failure)
    if case.systemout.value:
        ET.SubElement(element, "system-out").text = xml_safe(case.systemout.value)
    if case.systemerr.value:
        ET.SubElement(element, "system-err").text = xml_safe(case.systemerr.value)


def _failure_element(parent: ET.Element, tag: str, failure: Failure) -> None:
    element = ET.SubElement(
        parent,
        tag,
        _attributes({}, {"type": failure.type, "message": failure.message}),
    )
    element.text = xml_safe(failure.value)


def encode_report(result: AggregateResult, report_format: str) -> str:
    """Encode results in the given format.

    Raises:
        ValueError: If the format is unknown

    """
    match report_format:
        case "json":
            return to_json(result)
        case "yaml" | "yml":
            return to_yaml(result)
        case "xml":
            return to_xml(result)
    raise ValueError(
        f"Unknown report format '{report_format}'. Available formats: {REPORT_FORMATS}"
    )


def write_report(
    result: AggregateResult, report_format: str, output_dir: Path
) -> Path:
    """Write the encoded report to ``<output_dir>/test_results.<format>``.

    Raises:
        ReportWriteError: If the file cannot be written

    """
    filename = output_dir / f"test_results.{report_format}"
    data = encode_report(result, report_format)
    try:
        filename.write_text(data, encoding="utf-8")
    except OSError as exc:
        raise ReportWriteError(f"Cannot write report {filename}: {exc}") from exc
    log.info("Report written to %s", filename)
    return filename


def summary_lines(
    result: AggregateResult, elapsed: float, *, include_failures: bool = True
) -> Sequence[str]:
    """Build the end-of-run summary: failed suites, their failures, totals."""
    lines: list[str] = []
    failed = [suite for suite in result.test_suites if suite.failures or suite.errors]

    if include_failures:
        for suite in failed:
            lines.append(f"FAILED {suite.name}")
            lines.append("--------------")
            for case in suite.cases:
                lines.extend(failure.value for failure in case.failures)
                lines.extend(error.value for error in case.errors)
            lines.append("-=-=-=-=-=-=-=-=-")

    lines.extend(f"FAILED {suite.name}" for suite in failed)

    total_cases = sum(len(suite.cases) for suite in result.test_suites)
    total_steps = sum(
        len(case.steps) for suite in result.test_suites for case in suite.cases
    )
    lines.append(
        f"Total:{result.total} TotalOK:{result.ok} TotalKO:{result.ko} "
        f"TotalSkipped:{result.skipped} TotalTestSuite:{len(result.test_suites)} "
        f"TotalTestCase:{total_cases} TotalTestStep:{total_steps} "
        f"Duration:{elapsed:.3f}s"
    )
    return lines
