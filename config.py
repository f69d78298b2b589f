# config.py
import json
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


def parse_type_overrides(raw: str) -> Dict[str, Any]:
    """
    Parse a JSON object mapping GraphQL type names to fixed variable values.

    Used to patch schema quirks (custom scalars, oddly named types) without
    touching the synthesizer, e.g. '{"ContractLinkType": "BASIC"}'.
    """
    if not raw or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Type overrides are not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError("Type overrides must be a JSON object of type name -> value")
    return parsed


def load_type_overrides(path: str) -> Dict[str, Any]:
    """Read a type override table from a JSON file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_type_overrides(f.read())
    except OSError as e:
        raise ValueError(f"Could not read type overrides from {path}: {e}") from e


def parse_timeout(raw: Optional[Any]) -> Optional[float]:
    """Per-operation timeout in seconds; empty means no timeout."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        timeout = float(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid operation timeout: {raw!r}") from e
    if timeout <= 0:
        raise ValueError(f"Operation timeout must be positive, got {raw!r}")
    return timeout


def parse_field_complexity(raw: Optional[str]) -> int:
    if raw is None or not raw.strip():
        return DEFAULT_FIELD_COMPLEXITY
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Invalid default field cost: {raw!r}") from e


# Read per run; malformed values raise ValueError for the caller to report.
def env_operation_timeout() -> Optional[float]:
    return parse_timeout(os.getenv("COMPLEXITY_OPERATION_TIMEOUT"))


def env_type_overrides() -> Dict[str, Any]:
    return parse_type_overrides(os.getenv("COMPLEXITY_TYPE_OVERRIDES", ""))


def env_field_complexity() -> int:
    return parse_field_complexity(os.getenv("COMPLEXITY_DEFAULT_FIELD_COST"))


SCHEMA_PATH = os.getenv("COMPLEXITY_SCHEMA_PATH", "schema.gql")
OPERATIONS_PATH = os.getenv("COMPLEXITY_OPERATIONS_PATH", "queries.gql")
FRAGMENTS_PATH = os.getenv("COMPLEXITY_FRAGMENTS_PATH", "fragments.gql")
REPORT_PATH = os.getenv("COMPLEXITY_REPORT_PATH", "complexity.json")

# Value used for String, ID and JSON variables
PLACEHOLDER_STRING = os.getenv("COMPLEXITY_PLACEHOLDER_STRING", "test")
DEFAULT_FIELD_COMPLEXITY = 1
COMPLEXITY_DIRECTIVE = os.getenv("COMPLEXITY_DIRECTIVE_NAME", "complexity")

# "kind" inspects the schema type kind, "suffix" relies on the naming convention
TYPE_CLASSIFICATION = os.getenv("COMPLEXITY_TYPE_CLASSIFICATION", "kind")
INPUT_TYPE_SUFFIX = "Input"
ENUM_TYPE_SUFFIX = "Enum"

SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".graphql", ".gql")
DEFAULT_EXCLUSIONS = [
    ".git",
    "node_modules",
    "dist",
    "build",
    "coverage",
    "__pycache__",
    ".venv",
    "venv",
]
