"""Tests for the command line interface.

Test coverage:
- --version
- eval end to end on a small project, report output and --strict
- report re-rendering of a saved eval report
"""

import json
import textwrap
import uuid

import pytest
from typer.testing import CliRunner

from extract_evo import __version__
from extract_evo.cli.main import app
from extract_evo.core.reporter import write_eval_report
from extract_evo.models import EvalResult, TestCaseResult

runner = CliRunner()


@pytest.fixture
def project(tmp_path):
    """One passing and one failing invoice case."""
    module = f"cli_workflow_{uuid.uuid4().hex[:8]}"
    (tmp_path / f"{module}.py").write_text(textwrap.dedent("""
        from extract_evo import numeric

        COMPARATORS = {"total": numeric}

        def run(document):
            return {"total": document["amount"]}
    """), encoding="utf-8")
    (tmp_path / "prompt.md").write_text("Extract the total.", encoding="utf-8")
    (tmp_path / "tests").mkdir()
    (tmp_path / "tests" / "cases.yaml").write_text(textwrap.dedent("""
        name: totals
        cases:
          - input: {amount: "$10.00"}
            expected: {total: 10}
          - input: {amount: "11"}
            expected: {total: 12}
    """), encoding="utf-8")
    (tmp_path / "extract-evo.yaml").write_text(textwrap.dedent(f"""
        workflow:
          module: {module}
          comparators: COMPARATORS
          prompt_file: prompt.md
    """), encoding="utf-8")
    return tmp_path


class TestCli:
    """Tests for the typer app."""

    def test_version(self):
        """--version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_eval_writes_report(self, project):
        """eval prints a summary and saves the JSON report."""
        output = project / "out" / "report.json"
        result = runner.invoke(app, ["eval", "-c", str(project / "extract-evo.yaml"), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "50.0%" in result.output
        report = json.loads(output.read_text(encoding="utf-8"))
        assert report["summary"]["passed"] == 1
        assert report["test_cases"][0]["fields"]["total"]["expected"] == 12

    def test_eval_strict(self, project):
        """--strict exits non-zero when any case fails."""
        result = runner.invoke(app, ["eval", "-c", str(project / "extract-evo.yaml"), "--strict"])
        assert result.exit_code == 1

    def test_eval_missing_config(self, tmp_path):
        """A missing config file exits with status 1."""
        result = runner.invoke(app, ["eval", "-c", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1

    def test_report(self, tmp_path):
        """report re-renders a saved eval report."""
        result = EvalResult(
            test_cases=[TestCaseResult(input="doc", expected=1, actual=1, passed=True, pass_rate=1.0)],
            passed=1, total=1, success_rate=1.0,
        )
        path = write_eval_report(tmp_path, result)

        output = runner.invoke(app, ["report", str(path)])
        assert output.exit_code == 0
        assert "100.0%" in output.output

    def test_report_missing_file(self, tmp_path):
        """An unknown report path exits with status 1."""
        result = runner.invoke(app, ["report", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
