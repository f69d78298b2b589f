#!/usr/bin/env python3
"""
Reporter module for building and displaying the complexity report.

This module holds the per-operation result type, ranks results into the final
report, writes it as JSON and handles all console output, keeping the scorer
focused on estimation logic.
"""

import json
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

Number = Union[int, float]


@dataclass(frozen=True)
class ComplexityResult:
    """Complexity of one operation, standalone and with all fragments appended."""

    operation_name: Optional[str]
    operation_kind: str
    complexity: Number
    complexity_with_fragments: Number
    error: Optional[str] = None
    signature: str = ""

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "queryName": self.operation_name,
            "type": self.operation_kind,
            "complexity": self.complexity,
            "complexityWithFragments": self.complexity_with_fragments,
        }
        if self.error is not None:
            entry["error"] = self.error
        return entry


@dataclass(frozen=True)
class Report:
    entries: List[ComplexityResult] = field(default_factory=list)
    successes: int = 0
    failures: int = 0
    # None when the corpus is empty
    max_complexity: Optional[Number] = None

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]


def build_report(results: Sequence[ComplexityResult]) -> Report:
    """
    Rank per-operation results into the final report.

    Args:
        results: One result per operation, in encounter order

    Returns:
        Report sorted by complexity with fragments, highest first. The sort is
        stable so equal complexities keep their encounter order.
    """
    entries = sorted(results, key=lambda r: r.complexity_with_fragments, reverse=True)
    successes = sum(1 for r in entries if r.succeeded)
    max_complexity = entries[0].complexity_with_fragments if entries else None
    return Report(
        entries=entries,
        successes=successes,
        failures=len(entries) - successes,
        max_complexity=max_complexity,
    )


def write_report(report: Report, path: str) -> None:
    """Write the report as a JSON array for other tools to consume."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report.to_list(), f, indent=2)
        f.write("\n")


def format_summary(report: Report) -> str:
    max_complexity = "n/a" if report.max_complexity is None else report.max_complexity
    return (
        f"Success: {report.successes}, Errors: {report.failures}, "
        f"Max complexity: {max_complexity}"
    )


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


class ComplexityReporter:
    """Handles all output for the complexity tool."""

    @staticmethod
    def print_banner() -> None:
        """Print the CLI banner."""
        print("=" * 60)
        print("📊 GraphQL Operation Complexity Report")
        print("=" * 60)
        print()

    @staticmethod
    def print_collection_start(target_path: str) -> None:
        print(f"🔍 Collecting GraphQL operations from: {target_path}")

    @staticmethod
    def print_collection_complete(
        operation_count: int, fragment_count: int, operations_path: str, fragments_path: str
    ) -> None:
        print(
            f"✅ Collected {operation_count} operations -> {operations_path}, "
            f"{fragment_count} fragments -> {fragments_path}"
        )

    @staticmethod
    def print_schema_loaded(schema_path: str, input_count: int, enum_count: int) -> None:
        print(
            f"✅ Schema loaded from {schema_path} "
            f"({input_count} input types, {enum_count} enum types)"
        )

    @staticmethod
    def print_corpus_loaded(operation_count: int) -> None:
        print(f"🔄 Scoring {operation_count} operations...")

    @staticmethod
    def log_operation_scored(result: ComplexityResult) -> None:
        """Log one scored operation (verbose mode)."""
        print(
            f"   {result.operation_kind} {result.operation_name or '<anonymous>'}: "
            f"{result.complexity} / {result.complexity_with_fragments} with fragments"
        )

    @staticmethod
    def log_scoring_failure(message: str, signature: str) -> None:
        """Log an operation whose complexity could not be calculated."""
        print(
            f"Could not calculate complexity: {message} ({signature or '<anonymous>'})",
            file=sys.stderr,
        )

    @staticmethod
    def print_summary(report: Report) -> None:
        print(format_summary(report))

    @staticmethod
    def print_report_written(path: str, entry_count: int) -> None:
        print(f"📝 Wrote {entry_count} entries to {path}")

    @staticmethod
    def print_no_operations_found() -> None:
        print("❌ No operations found to score")
