"""
End-to-end CLI runs against a temporary SQLite mirror.
"""

import pytest
from typer.testing import CliRunner

from docchat.cli import app

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DOCCHAT_EMBEDDER", "hashing")
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "data" / "index.sqlite"))
    monkeypatch.setenv("MAX_CHUNK_SIZE", "7")
    (tmp_path / "notes.txt").write_text(
        "Ravens are clever birds. They solve puzzles. Owls hunt at night.", encoding="utf-8"
    )
    return tmp_path


def test_index_then_stats_search_and_clear(workspace):
    result = runner.invoke(app, ["index", "notes.txt"])
    assert result.exit_code == 0, result.output
    assert "Total chunks in store: 2" in result.output

    result = runner.invoke(app, ["stats"])
    assert result.exit_code == 0, result.output
    assert "total_chunks: 2" in result.output
    assert "dimension: 16" in result.output

    result = runner.invoke(app, ["search", "Owls hunt at night.", "--top-k", "1", "--prompt"])
    assert result.exit_code == 0, result.output
    assert "USER QUESTION:" in result.output
    assert "[Context 1]:" in result.output

    result = runner.invoke(app, ["clear"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["stats"])
    assert "total_chunks: 0" in result.output


def test_index_rejects_unsupported_files(workspace):
    (workspace / "image.png").write_bytes(b"\x89PNG")

    result = runner.invoke(app, ["index", "image.png"])

    assert result.exit_code != 0


def test_search_on_empty_store(workspace):
    result = runner.invoke(app, ["search", "anything"])

    assert result.exit_code == 0
    assert "No relevant context found" in result.output
