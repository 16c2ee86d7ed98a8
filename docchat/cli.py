"""Docchat CLI.

Commands:
  - index: chunk and embed text files into the store
  - search: rank stored chunks against a query
  - stats: show store stats
  - clear: delete all chunks

State persists between runs through the SQLite mirror (`SQLITE_PATH`,
default `data/index.sqlite`).
"""

from __future__ import annotations

from typing import List, Optional

import typer

from .cli_actions import do_clear, do_index, do_search, do_stats, setup_logging

app = typer.Typer(add_completion=False, help="Docchat: chunk, embed and search documents.")


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Global options."""
    setup_logging(verbose)


@app.command()
def index(
    files: List[str] = typer.Argument(..., help="Text files to index (.txt, .md)."),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", help="Max tokens per chunk for this run."),
    settings_file: Optional[str] = typer.Option(None, "--settings", help="Path to a settings.json file."),
):
    """Chunk, embed and store text files."""
    do_index(files=files, chunk_size=chunk_size, settings_file=settings_file)


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text."),
    top_k: Optional[int] = typer.Option(None, "--top-k", help="How many chunks to retrieve."),
    show_prompt: bool = typer.Option(False, "--prompt", help="Also print the generation prompt."),
    settings_file: Optional[str] = typer.Option(None, "--settings", help="Path to a settings.json file."),
):
    """Search stored chunks."""
    do_search(query=query, top_k=top_k, show_prompt=show_prompt, settings_file=settings_file)


@app.command()
def stats(
    settings_file: Optional[str] = typer.Option(None, "--settings", help="Path to a settings.json file."),
):
    """Show store stats."""
    do_stats(settings_file=settings_file)


@app.command()
def clear(
    settings_file: Optional[str] = typer.Option(None, "--settings", help="Path to a settings.json file."),
):
    """Delete all stored chunks."""
    do_clear(settings_file=settings_file)


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
