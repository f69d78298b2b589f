"""Tests for report building and output."""

import json
from pathlib import Path

from reporter import (
    ComplexityReporter,
    ComplexityResult,
    build_report,
    format_summary,
    write_report,
)


def _result(name, with_fragments, error=None, kind="query"):
    complexity = 0 if error else with_fragments
    return ComplexityResult(
        operation_name=name,
        operation_kind=kind,
        complexity=complexity,
        complexity_with_fragments=complexity,
        error=error,
        signature=f"{kind} {name}",
    )


class TestBuildReport:
    def test_sorted_descending(self):
        report = build_report([_result("A", 3), _result("B", 10), _result("C", 7)])
        assert [e.operation_name for e in report.entries] == ["B", "C", "A"]
        assert report.max_complexity == 10

    def test_ties_keep_encounter_order(self):
        results = [_result("First", 5), _result("Big", 9), _result("Second", 5), _result("Third", 5)]
        report = build_report(results)
        assert [e.operation_name for e in report.entries] == ["Big", "First", "Second", "Third"]

    def test_counts(self):
        report = build_report([_result("Bad", 0, error="boom"), _result("Good", 4)])
        assert len(report.entries) == 2
        assert (report.successes, report.failures) == (1, 1)
        assert report.entries[0].operation_name == "Good"
        failed = report.entries[1]
        assert failed.error == "boom"
        assert failed.complexity == failed.complexity_with_fragments == 0

    def test_empty_corpus(self):
        report = build_report([])
        assert report.entries == []
        assert report.max_complexity is None
        assert (report.successes, report.failures) == (0, 0)
        assert format_summary(report) == "Success: 0, Errors: 0, Max complexity: n/a"

    def test_input_is_not_mutated(self):
        results = [_result("A", 1), _result("B", 2)]
        build_report(results)
        assert [r.operation_name for r in results] == ["A", "B"]


class TestOutput:
    def test_to_dict_omits_missing_error(self):
        assert _result("A", 3, kind="mutation").to_dict() == {
            "queryName": "A",
            "type": "mutation",
            "complexity": 3,
            "complexityWithFragments": 3,
        }
        assert _result("B", 0, error="boom").to_dict()["error"] == "boom"

    def test_write_report(self, tmp_path: Path):
        report = build_report([_result("A", 1), _result("B", 2, error="bad")])
        path = tmp_path / "complexity.json"
        write_report(report, str(path))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert [entry["queryName"] for entry in data] == ["A", "B"]
        assert data[1]["error"] == "bad"

    def test_summary_line(self, capsys):
        report = build_report([_result("A", 12), _result("B", 0, error="bad")])
        ComplexityReporter.print_summary(report)
        assert capsys.readouterr().out.strip() == "Success: 1, Errors: 1, Max complexity: 12"

    def test_failure_diagnostic_goes_to_stderr(self, capsys):
        ComplexityReporter.log_scoring_failure("Unknown fragment 'X'.", "query GetUser")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Unknown fragment 'X'." in captured.err
        assert "query GetUser" in captured.err
