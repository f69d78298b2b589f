"""End-to-end tests for the complexity CLI."""

import json
from pathlib import Path

import pytest

from cli import main

OPERATIONS = """
query Me {
  me { ...UserFields }
}
query Posts($first: Int) {
  me { posts(first: $first) { id title } }
}
query Broken($at: DateTime!) {
  me { id }
}
"""

FRAGMENTS = "fragment UserFields on User { id name email }\n"


@pytest.fixture
def workspace(tmp_path: Path, schema_sdl: str) -> Path:
    (tmp_path / "schema.gql").write_text(schema_sdl, encoding="utf-8")
    (tmp_path / "queries.gql").write_text(OPERATIONS, encoding="utf-8")
    (tmp_path / "fragments.gql").write_text(FRAGMENTS, encoding="utf-8")
    return tmp_path


def _args(workspace: Path, *extra: str):
    return [
        "--schema",
        str(workspace / "schema.gql"),
        "--operations",
        str(workspace / "queries.gql"),
        "--fragments",
        str(workspace / "fragments.gql"),
        "--output",
        str(workspace / "complexity.json"),
        *extra,
    ]


def test_full_run(workspace: Path, capsys):
    assert main(_args(workspace)) == 0

    report = json.loads((workspace / "complexity.json").read_text(encoding="utf-8"))
    assert [entry["queryName"] for entry in report] == ["Posts", "Me", "Broken"]
    assert report[0] == {
        "queryName": "Posts",
        "type": "query",
        "complexity": 5,
        "complexityWithFragments": 5,
    }
    assert report[1]["complexity"] == 1
    assert report[1]["complexityWithFragments"] == 4
    assert report[2]["complexity"] == 0
    assert "DateTime" in report[2]["error"]

    captured = capsys.readouterr()
    assert "Success: 2, Errors: 1, Max complexity: 5" in captured.out
    assert "query Broken" in captured.err


def test_overrides_file(workspace: Path):
    overrides = workspace / "overrides.json"
    overrides.write_text('{"DateTime": "2024-01-01"}', encoding="utf-8")
    assert main(_args(workspace, "--overrides", str(overrides))) == 0

    report = json.loads((workspace / "complexity.json").read_text(encoding="utf-8"))
    assert all("error" not in entry for entry in report)


def test_collects_from_source_tree(workspace: Path):
    src = workspace / "src"
    src.mkdir()
    (src / "me.ts").write_text(
        "export const ME = gql`\n  query Me { me { ...UserFields } }\n  ${USER_FIELDS}\n`;\n"
        "export const USER_FIELDS = gql`\n  fragment UserFields on User { id name }\n`;\n",
        encoding="utf-8",
    )
    assert main(_args(workspace, "--path", str(src))) == 0

    report = json.loads((workspace / "complexity.json").read_text(encoding="utf-8"))
    assert report == [
        {"queryName": "Me", "type": "query", "complexity": 1, "complexityWithFragments": 3}
    ]


def test_empty_corpus(workspace: Path, capsys):
    (workspace / "queries.gql").write_text("", encoding="utf-8")
    assert main(_args(workspace)) == 0
    assert json.loads((workspace / "complexity.json").read_text(encoding="utf-8")) == []
    assert "Max complexity: n/a" in capsys.readouterr().out


def test_unreadable_schema_aborts(workspace: Path, capsys):
    (workspace / "schema.gql").unlink()
    assert main(_args(workspace)) == 1
    assert "Error:" in capsys.readouterr().err
    assert not (workspace / "complexity.json").exists()


def test_invalid_timeout_aborts(workspace: Path, capsys):
    assert main(_args(workspace, "--timeout", "never")) == 1
    assert "Invalid operation timeout" in capsys.readouterr().err


@pytest.mark.parametrize(
    "variable, value, message",
    [
        ("COMPLEXITY_OPERATION_TIMEOUT", "abc", "Invalid operation timeout"),
        ("COMPLEXITY_TYPE_OVERRIDES", "{nope", "not valid JSON"),
        ("COMPLEXITY_DEFAULT_FIELD_COST", "cheap", "Invalid default field cost"),
    ],
)
def test_bad_environment_setting_aborts(workspace: Path, capsys, monkeypatch, variable, value, message):
    monkeypatch.setenv(variable, value)
    assert main(_args(workspace)) == 1
    err = capsys.readouterr().err
    assert f"Error: {message}" in err
    assert "Traceback" not in err
    assert not (workspace / "complexity.json").exists()


def test_environment_settings_apply(workspace: Path, monkeypatch):
    monkeypatch.setenv("COMPLEXITY_TYPE_OVERRIDES", '{"DateTime": "2024-01-01"}')
    monkeypatch.setenv("COMPLEXITY_DEFAULT_FIELD_COST", "2")
    assert main(_args(workspace)) == 0

    report = json.loads((workspace / "complexity.json").read_text(encoding="utf-8"))
    assert all("error" not in entry for entry in report)
    broken = next(entry for entry in report if entry["queryName"] == "Broken")
    # me (2) + id (2)
    assert broken["complexity"] == 4
