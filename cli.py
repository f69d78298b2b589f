#!/usr/bin/env python3
"""
CLI for GraphQL Operation Complexity Analysis

This CLI scores every GraphQL operation of a client code base against a schema
without executing anything:
- Optional collection of gql`...` operations from a source tree
- Variable synthesis from the schema's input and enum types
- Complexity estimation with and without fragments
- A ranked JSON report and a one line summary

Usage:
    python cli.py                                   # Score queries.gql + fragments.gql
    python cli.py --schema schema.graphql           # Use another schema
    python cli.py --path ../app/src/queries         # Collect operations first
    python cli.py --overrides overrides.json        # Patch schema quirks
    python cli.py --timeout 5 --verbose             # Per-operation timeout, details
"""

import argparse
import asyncio
import os
import sys
from typing import Any, Dict, List, Optional

# Add current directory to path for imports
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from catalog import TypeCatalog
from config import (
    DEFAULT_EXCLUSIONS,
    FRAGMENTS_PATH,
    OPERATIONS_PATH,
    REPORT_PATH,
    SCHEMA_PATH,
    TYPE_CLASSIFICATION,
    env_field_complexity,
    env_operation_timeout,
    env_type_overrides,
    load_type_overrides,
    parse_timeout,
)
from extractor import collect_operations, write_corpus
from loader import load_schema, read_document
from reporter import (
    ComplexityReporter,
    Report,
    build_report,
    print_error,
    write_report,
)
from scorer import analyze_corpus, default_estimators
from synthesizer import VariableSynthesizer


class ComplexityCLI:
    """Runs one complexity analysis from collection to report."""

    def __init__(self):
        self.schema_path = SCHEMA_PATH
        self.operations_path = OPERATIONS_PATH
        self.fragments_path = FRAGMENTS_PATH
        self.output_path = REPORT_PATH
        self.source_path: Optional[str] = None
        self.exclude_patterns: List[str] = []
        self.type_overrides: Dict[str, Any] = env_type_overrides()
        self.timeout = env_operation_timeout()
        self.default_complexity = env_field_complexity()
        self.classification = TYPE_CLASSIFICATION
        self.verbose = False

    def run_collection(self) -> None:
        """Collect operations from the source tree and write the corpus documents."""
        ComplexityReporter.print_collection_start(self.source_path)
        texts = collect_operations(
            self.source_path, DEFAULT_EXCLUSIONS + self.exclude_patterns
        )
        operations, fragments = write_corpus(
            texts, self.operations_path, self.fragments_path
        )
        ComplexityReporter.print_collection_complete(
            len(operations), len(fragments), self.operations_path, self.fragments_path
        )

    def run_analysis(self) -> Report:
        """Load the schema and corpus, score every operation and build the report."""
        schema = load_schema(self.schema_path)
        catalog = TypeCatalog.from_schema(schema, self.classification)
        ComplexityReporter.print_schema_loaded(
            self.schema_path, len(catalog.input_types), len(catalog.enum_types)
        )

        operations_document = read_document(self.operations_path)
        fragments_document = read_document(self.fragments_path, required=False)

        synthesizer = VariableSynthesizer(catalog, self.type_overrides)
        results = asyncio.run(
            analyze_corpus(
                operations_document,
                fragments_document,
                schema,
                synthesizer,
                estimators=default_estimators(self.default_complexity),
                timeout=self.timeout,
            )
        )
        if not results:
            ComplexityReporter.print_no_operations_found()
        return build_report(results)

    def display_results(self, report: Report) -> None:
        if self.verbose:
            for entry in report.entries:
                ComplexityReporter.log_operation_scored(entry)
        write_report(report, self.output_path)
        ComplexityReporter.print_report_written(self.output_path, len(report.entries))
        ComplexityReporter.print_summary(report)

    def run(self) -> Report:
        if self.source_path:
            self.run_collection()
        report = self.run_analysis()
        self.display_results(report)
        return report


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Static complexity analysis of GraphQL operations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py --schema schema.gql
  python cli.py --path ../app/src/queries --output complexity.json
  python cli.py --classify-by suffix --overrides overrides.json
        """,
    )
    parser.add_argument("--schema", type=str, default=SCHEMA_PATH, help="Schema file (SDL or introspection JSON)")
    parser.add_argument(
        "--operations", type=str, default=OPERATIONS_PATH, help="Operations document"
    )
    parser.add_argument(
        "--fragments", type=str, default=FRAGMENTS_PATH, help="Fragments document"
    )
    parser.add_argument("--output", type=str, default=REPORT_PATH, help="Report file")
    parser.add_argument(
        "--path",
        type=str,
        default=None,
        help="Collect operations from this source tree before scoring",
    )
    parser.add_argument(
        "--exclude", type=str, default="", help="Comma-separated patterns to exclude"
    )
    parser.add_argument(
        "--overrides",
        type=str,
        default=None,
        help="JSON file mapping type names to fixed variable values",
    )
    parser.add_argument(
        "--timeout", type=str, default=None, help="Per-operation timeout in seconds"
    )
    parser.add_argument(
        "--classify-by",
        choices=["kind", "suffix"],
        default=TYPE_CLASSIFICATION,
        help="Classify input/enum types by schema kind or by name suffix",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")

    args = parser.parse_args(argv)

    try:
        cli = ComplexityCLI()
        cli.schema_path = args.schema
        cli.operations_path = args.operations
        cli.fragments_path = args.fragments
        cli.output_path = args.output
        cli.source_path = args.path
        cli.exclude_patterns = [p.strip() for p in args.exclude.split(",") if p.strip()]
        cli.classification = args.classify_by
        cli.verbose = args.verbose

        if args.overrides:
            cli.type_overrides.update(load_type_overrides(args.overrides))
        if args.timeout is not None:
            cli.timeout = parse_timeout(args.timeout)
        ComplexityReporter.print_banner()
        cli.run()
    except (RuntimeError, ValueError, OSError) as e:
        print_error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
