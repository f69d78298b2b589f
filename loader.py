# loader.py
import json
import os

from graphql import GraphQLSchema, build_client_schema, build_schema


def _read_text(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise RuntimeError(f"Could not read {path}: {e}") from e


def load_schema(path: str) -> GraphQLSchema:
    """
    Load the GraphQL schema every operation is scored against.

    `.json` files are treated as introspection results (the output of
    get-graphql-schema --json or a raw introspection query response);
    anything else is parsed as SDL.
    """
    content = _read_text(path)

    if path.endswith(".json"):
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Schema file {path} is not valid JSON: {e}") from e
        # the introspection payload may or may not be wrapped in "data"
        data = parsed.get("data", parsed) if isinstance(parsed, dict) else parsed
        if isinstance(parsed, dict) and parsed.get("errors"):
            raise RuntimeError(
                f"Schema file {path} contains introspection errors:\n{parsed['errors']}"
            )
        try:
            return build_client_schema(data)
        except Exception as e:
            raise RuntimeError(f"Could not build schema from {path}: {e}") from e

    try:
        return build_schema(content)
    except Exception as e:
        raise RuntimeError(f"Could not build schema from {path}: {e}") from e


def read_document(path: str, required: bool = True) -> str:
    """Read an operations or fragments document; optional documents may be absent."""
    if not required and not os.path.exists(path):
        return ""
    return _read_text(path)
