"""Tests for CLI module."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from stepwise.cli import EXIT_SETUP_ERROR, build_parser, has_failures, main, run
from stepwise.models.report import AggregateResult
from stepwise.process import SetupError
from stepwise.testing.factories import (
    AggregateResultFactory,
    CaseFactory,
    FailureFactory,
    SuiteFactory,
)


def passing_result() -> AggregateResult:
    suite = SuiteFactory.build(
        name="alpha [alpha.yml]", total=1, cases=[CaseFactory.build(name="c")]
    )
    return AggregateResultFactory.build(
        total=1, ok=1, ko=0, skipped=0, test_suites=[suite]
    )


def failing_result() -> AggregateResult:
    failure = FailureFactory.build(value="step failed", type="ExecutionError")
    case = CaseFactory.build(name="c", failures=[failure])
    suite = SuiteFactory.build(
        name="beta [beta.yml]", total=1, failures=1, cases=[case]
    )
    return AggregateResultFactory.build(
        total=1, ok=0, ko=1, skipped=0, test_suites=[suite]
    )


def test_has_failures() -> None:
    """Failures and errors both count as failing the run."""
    errored = passing_result()
    errored.test_suites[0].errors = 1

    assert not has_failures(passing_result())
    assert has_failures(failing_result())
    assert has_failures(errored)


class TestRun:
    """Tests for run function."""

    async def test_returns_zero_when_all_cases_pass(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Returns 0 and prints the totals line."""
        with patch(
            "stepwise.cli.process",
            new_callable=AsyncMock,
            return_value=passing_result(),
        ) as mock_process:
            exit_code = await run(path="suites", aliases=["a:b"], parallel=3)

        assert exit_code == 0
        mock_process.assert_called_once_with(
            "suites", ["a:b"], 3, "medium", step_timeout=None, suite_timeout=None
        )
        captured = capsys.readouterr()
        assert "Total:1 TotalOK:1 TotalKO:0" in captured.out

    async def test_returns_one_when_a_suite_fails(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Returns 1 and prints failure details."""
        with patch(
            "stepwise.cli.process",
            new_callable=AsyncMock,
            return_value=failing_result(),
        ):
            exit_code = await run(path="suites")

        assert exit_code == 1
        captured = capsys.readouterr()
        assert "FAILED beta [beta.yml]" in captured.out
        assert "step failed" in captured.out

    async def test_hides_failures_when_disabled(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Failure details are left out with resume_failures off."""
        with patch(
            "stepwise.cli.process",
            new_callable=AsyncMock,
            return_value=failing_result(),
        ):
            await run(path="suites", resume_failures=False)

        assert "step failed" not in capsys.readouterr().out

    async def test_no_summary_without_resume(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Nothing is printed with resume off."""
        with patch(
            "stepwise.cli.process",
            new_callable=AsyncMock,
            return_value=passing_result(),
        ):
            await run(path="suites", resume=False)

        assert capsys.readouterr().out == ""

    async def test_prints_report_at_high_detail(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """The encoded report is printed at high detail."""
        with patch(
            "stepwise.cli.process",
            new_callable=AsyncMock,
            return_value=passing_result(),
        ):
            await run(path="suites", details="high", report_format="json", resume=False)

        assert json.loads(capsys.readouterr().out)["ok"] == 1

    async def test_writes_report(self, tmp_path: Path) -> None:
        """Writes the report into the output directory."""
        with patch(
            "stepwise.cli.process",
            new_callable=AsyncMock,
            return_value=passing_result(),
        ):
            exit_code = await run(
                path="suites", report_format="xml", output_dir=tmp_path, resume=False
            )

        assert exit_code == 0
        assert (tmp_path / "test_results.xml").read_text().startswith("<?xml")

    async def test_returns_one_when_report_cannot_be_written(
        self, tmp_path: Path
    ) -> None:
        """Returns 1 when the output directory is unusable."""
        with patch(
            "stepwise.cli.process",
            new_callable=AsyncMock,
            return_value=passing_result(),
        ):
            exit_code = await run(
                path="suites", output_dir=tmp_path / "missing", resume=False
            )

        assert exit_code == 1

    async def test_returns_two_on_setup_error(self) -> None:
        """Setup errors exit with a distinct code."""
        with patch(
            "stepwise.cli.process",
            new_callable=AsyncMock,
            side_effect=SetupError("Invalid path pattern"),
        ):
            exit_code = await run(path="[bad")

        assert exit_code == EXIT_SETUP_ERROR


class TestBuildParser:
    """Tests for argument parsing."""

    def test_defaults(self) -> None:
        """Runs the current directory with XML output by default."""
        args = build_parser().parse_args(["run"])

        assert args.path == "."
        assert args.alias == []
        assert args.format == "xml"
        assert args.parallel == 1
        assert args.details == "medium"
        assert args.resume is True
        assert args.output_dir is None

    def test_all_options(self) -> None:
        """Parses every run option."""
        args = build_parser().parse_args(
            [
                "run",
                "suites/*.yml",
                "--alias",
                "api:http://x",
                "--alias",
                "db:psql",
                "--format",
                "yaml",
                "--parallel",
                "4",
                "--output-dir",
                "out",
                "--details",
                "high",
                "--no-resume",
                "--no-resume-failures",
                "--step-timeout",
                "1.5",
                "--suite-timeout",
                "30",
            ]
        )

        assert args.path == "suites/*.yml"
        assert args.alias == ["api:http://x", "db:psql"]
        assert args.format == "yaml"
        assert args.parallel == 4
        assert args.output_dir == Path("out")
        assert args.resume is False
        assert args.resume_failures is False
        assert args.step_timeout == 1.5
        assert args.suite_timeout == 30.0

    def test_rejects_unknown_format(self) -> None:
        """Only supported report formats are accepted."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["run", "--format", "csv"])


class TestMain:
    """Tests for main CLI entry point."""

    def test_main_exits_with_run_code(self) -> None:
        """Exits with the code returned by run."""
        with (
            patch("sys.argv", ["stepwise", "run", "suites", "--log", "debug"]),
            patch("stepwise.cli.asyncio.run", return_value=0) as mock_run,
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == 0
        mock_run.assert_called_once()

    def test_main_exits_with_failure_code(self) -> None:
        """Propagates a failing exit code."""
        with (
            patch("sys.argv", ["stepwise", "run"]),
            patch("stepwise.cli.asyncio.run", return_value=1),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == 1
