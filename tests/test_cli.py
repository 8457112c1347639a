"""Tests for the typer command line."""

import json

import pytest
from typer.testing import CliRunner

from llmexpand import main
from llmexpand.application.provider import CompletionProvider
from llmexpand.domain.errors import BackendUnavailable

runner = CliRunner()


@pytest.fixture
def patch_backend(monkeypatch):
    """Route CLI requests to the given stub backend."""

    def install(backend):
        monkeypatch.setattr(
            main, "CompletionProvider", lambda getter: CompletionProvider(getter, backend=backend)
        )
        return backend

    return install


def test_suggest_json(patch_backend, fox_backend):
    patch_backend(fox_backend)

    result = runner.invoke(main.cli, ["suggest", "The quick brown ", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["isIncomplete"] is False
    assert [item["label"] for item in data["items"]] == [" fox jumps", " dog barks"]
    assert data["items"][0]["range"] == {"start": 15, "end": 16}
    assert data["items"][0]["sortText"] == "00000"
    assert data["items"][0]["detail"] == "(LLM)"


def test_suggest_table(patch_backend, fox_backend):
    patch_backend(fox_backend)

    result = runner.invoke(main.cli, ["suggest", "The quick brown "])

    assert result.exit_code == 0, result.output
    assert "fox jumps" in result.stdout


def test_suggest_passes_overrides(patch_backend, fox_backend):
    patch_backend(fox_backend)

    result = runner.invoke(
        main.cli, ["suggest", "The quick brown fox", "--cursor", "16", "-n", "1", "--depth", "0", "--json"]
    )

    assert result.exit_code == 0, result.output
    assert fox_backend.contexts == ["The quick brown"]
    assert fox_backend.branch_requests == [6]
    assert [item["label"] for item in json.loads(result.stdout)["items"]] == [" fox"]


def test_suggest_no_results(patch_backend, stub_backend):
    patch_backend(stub_backend(tokens=["<|endoftext|>"]))

    result = runner.invoke(main.cli, ["suggest", "The end "])

    assert result.exit_code == 0
    assert "No suggestions" in result.stdout


def test_suggest_backend_failure(patch_backend, stub_backend):
    patch_backend(stub_backend(discovery_error=BackendUnavailable("connection refused")))

    result = runner.invoke(main.cli, ["suggest", "abc "])

    assert result.exit_code == 0
    assert "LLM Expand error: connection refused" in result.output
    assert "No suggestions" in result.output


def test_cursor_out_of_range():
    result = runner.invoke(main.cli, ["suggest", "abc", "--cursor", "10"])
    assert result.exit_code == 2


def test_invalid_override():
    result = runner.invoke(main.cli, ["suggest", "abc", "--max-completions", "0"])
    assert result.exit_code == 1


def test_completions_as_json_empty():
    from llmexpand.domain.types import CompletionList

    assert json.loads(main.completions_as_json(CompletionList())) == {"isIncomplete": False, "items": []}
