# docchat/cli_actions.py
"""
Reusable CLI actions.

`docchat.cli` parses arguments and calls these functions. Each action builds
a store backed by the SQLite mirror, so state from earlier invocations is
rehydrated before the action runs.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .chunking.sentences import SentenceChunker
from .config import Settings, load_settings
from .embeddings import make_embedder
from .ingest.loaders import TEXT_EXTENSIONS, read_text_file
from .rag.prompt import build_rag_prompt
from .vectordb.sqlite_mirror import SQLiteMirror
from .vectordb.store import VectorStore

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _settings(settings_file: Optional[str]) -> Settings:
    return load_settings(Path(settings_file) if settings_file else None)


async def _open_store(settings: Settings) -> VectorStore:
    """
    Open a store for the configured embedder and mirror, rehydrated.

    Args:
        settings: Loaded settings.

    Returns:
        Ready VectorStore.
    """
    backend = settings.backend
    model = settings.store.embedding_model

    def factory():
        return make_embedder(backend.embedder, model, ollama_host=backend.ollama_host)

    durable = SQLiteMirror(settings.store.sqlite_path) if settings.store.persist else None
    store = await VectorStore.open(factory, model_name=model, durable=durable, max_chunks=settings.store.max_chunks)
    await store.ready()
    if durable is not None and not store.connected:
        console.print(f"[yellow]Mirror unavailable ({settings.store.sqlite_path}); changes will not persist.[/yellow]")
    return store


def do_index(files: List[str], chunk_size: Optional[int] = None, settings_file: Optional[str] = None) -> None:
    """
    Chunk and embed text files into the store.

    Args:
        files: Text file paths.
        chunk_size: Token budget override for this run.
        settings_file: Optional settings.json path.

    Raises:
        typer.BadParameter: If a file is missing or not a supported text type.
    """
    settings = _settings(settings_file)
    paths = [Path(f).expanduser() for f in files]
    for p in paths:
        if not p.is_file():
            raise typer.BadParameter(f"Not a file: {p}")
        if p.suffix.lower() not in TEXT_EXTENSIONS:
            raise typer.BadParameter(f"Unsupported file type: {p.name}. Allowed: {', '.join(TEXT_EXTENSIONS)}")

    chunker = SentenceChunker(settings.chunking.chunk_size, settings.chunking.chunk_overlap)

    async def run() -> None:
        store = await _open_store(settings)
        table = Table(show_header=True, header_style="bold")
        table.add_column("File")
        table.add_column("Chunks", justify="right")
        try:
            progress = Progress(
                SpinnerColumn(),
                TextColumn("{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=console,
            )
            with progress:
                task = progress.add_task("Indexing files", total=len(paths))
                for p in paths:
                    try:
                        text, _ = read_text_file(p, settings.runtime.max_file_mb)
                    except ValueError as e:
                        console.print(f"[red]Skipping {p.name}:[/red] {e}")
                        progress.advance(task, 1)
                        continue
                    chunks = chunker.chunk_by_sentences(text, chunk_size)
                    if not chunks:
                        console.print(f"[yellow]No text could be extracted from {p.name}[/yellow]")
                    else:
                        await store.add_documents(chunks)
                    table.add_row(str(p), str(len(chunks)))
                    progress.advance(task, 1)
        finally:
            await store.close()

        console.print(table)
        console.print(f"Total chunks in store: {store.get_stats()['total_chunks']}")

    asyncio.run(run())


def do_search(query: str, top_k: Optional[int] = None, show_prompt: bool = False, settings_file: Optional[str] = None) -> None:
    """
    Search the store and print ranked chunks.

    Args:
        query: Query text.
        top_k: Number of hits (defaults to settings).
        show_prompt: Also print the prompt that would be sent to the generator.
        settings_file: Optional settings.json path.
    """
    settings = _settings(settings_file)
    k = settings.runtime.top_k if top_k is None else top_k

    async def run():
        store = await _open_store(settings)
        try:
            return await store.search(query, k)
        finally:
            await store.close()

    hits = asyncio.run(run())
    if not hits:
        console.print("[yellow]No relevant context found in the store.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Id", justify="right")
    table.add_column("Text")
    for h in hits:
        preview = h.chunk.text if len(h.chunk.text) <= 120 else h.chunk.text[:117] + "..."
        table.add_row(f"{h.score:.3f}", str(h.chunk.id), preview)
    console.print(table)

    if show_prompt:
        console.print("\n[bold]Prompt[/bold]\n")
        console.print(build_rag_prompt(query, hits, history_turns=settings.runtime.history_turns), markup=False)


def do_stats(settings_file: Optional[str] = None) -> None:
    """Print vector store statistics."""
    settings = _settings(settings_file)

    async def run():
        store = await _open_store(settings)
        try:
            return store.get_stats()
        finally:
            await store.close()

    stats = asyncio.run(run())
    for k, v in stats.items():
        console.print(f"- {k}: {v}")
    console.print(f"- max_chunk_size: {settings.chunking.chunk_size}")
    console.print(f"- chunk_overlap: {settings.chunking.chunk_overlap}")
    console.print(f"- sqlite_path: {settings.store.sqlite_path if settings.store.persist else '<disabled>'}")


def do_clear(settings_file: Optional[str] = None) -> None:
    """Delete every chunk from memory and the mirror."""
    settings = _settings(settings_file)

    async def run() -> None:
        store = await _open_store(settings)
        try:
            await store.clear()
        finally:
            await store.close()

    asyncio.run(run())
    console.print("[bold yellow]All data cleared[/bold yellow]")
