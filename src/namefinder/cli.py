"""Command line interface for NameFinder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.filesize import decimal
from rich.markup import escape
from rich.table import Table

from namefinder.config import AppConfig
from namefinder.embedding.lookup import EmbeddingLoadError, load_lookup
from namefinder.index.indexer import Indexer
from namefinder.index.search import Searcher, WildcardSearcher
from namefinder.index.storage import PersistenceError, SQLiteIndexStore
from namefinder.models import FileSystemEntry
from namefinder.utils.glob import PatternError


console = Console()
app = typer.Typer(help="NameFinder - find files by name pattern or by meaning")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(code=1)


def _open_store(db_path: Path) -> SQLiteIndexStore:
    try:
        return SQLiteIndexStore(db_path)
    except PersistenceError as exc:
        _fail(str(exc))


def _existing_db(db: Path | None) -> Path:
    config = AppConfig(db_path=db if db is not None else AppConfig().db_path)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        raise typer.BadParameter(f"Database not found: {resolved_db}")
    return resolved_db


def _print_entry(entry: FileSystemEntry) -> None:
    color = "blue" if entry.is_directory else "yellow"
    console.print(
        f"[green]{decimal(entry.size):>9}[/green]\t[{color}]{escape(entry.path)}[/{color}]",
        highlight=False,
        soft_wrap=True,
    )


@app.command()
def index(
    root: Path = typer.Argument(..., exists=True, resolve_path=True, help="Directory to index."),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index a directory tree, recording every file and directory."""
    _setup_logging(verbose)
    config = AppConfig(db_path=db if db is not None else AppConfig().db_path)
    resolved_db = config.resolve_db_path(Path.cwd())
    _ensure_db_parent(resolved_db)

    store = _open_store(resolved_db)
    indexer = Indexer(store)

    console.print(f"Indexing into [bold]{escape(str(resolved_db))}[/bold]...")
    try:
        stats = indexer.index(root, on_entry=_print_entry)
    except PersistenceError as exc:
        _fail(str(exc))
    finally:
        store.close()

    console.print(
        f"Processed: {stats.processed}, new: {stats.inserted}, "
        f"already indexed: {stats.skipped}"
    )


@app.command()
def search(
    pattern: str = typer.Argument(..., help="Wildcard pattern, e.g. '*.pdf' or 'report.{txt,md}'"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Find indexed entries whose name matches a wildcard pattern."""
    _setup_logging(verbose)
    resolved_db = _existing_db(db)
    store = _open_store(resolved_db)

    found = 0
    try:
        for entry in WildcardSearcher(store).search(pattern):
            found += 1
            console.print(
                f"[yellow]{escape(entry.name)}[/yellow]: [blue]{escape(entry.path)}[/blue] "
                f"([green]{decimal(entry.size)}[/green])",
                highlight=False,
                soft_wrap=True,
            )
    except PatternError as exc:
        _fail(f"Invalid pattern: {exc}")
    except PersistenceError as exc:
        _fail(str(exc))
    finally:
        store.close()

    if not found:
        console.print("[yellow]No matches found.[/yellow]")


@app.command("semantic-search")
def semantic_search(
    query: str = typer.Argument(..., help="Query token"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    vectors: Path = typer.Option(
        None,
        "--vectors",
        envvar="NAMEFINDER_VECTORS",
        help="Word-vector file (.vec text format); the sentence encoder is used when omitted",
    ),
    model: str = typer.Option(AppConfig().model_name, help="Sentence-transformer model name"),
    top_k: int = typer.Option(AppConfig().top_k, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rank indexed files by how close their names are to a query token."""
    _setup_logging(verbose)
    config = AppConfig(
        db_path=db if db is not None else AppConfig().db_path,
        vectors_path=vectors,
        model_name=model,
        top_k=top_k,
    )
    resolved_db = _existing_db(config.db_path)

    try:
        lookup = load_lookup(config.vectors_path, config.model_name)
    except EmbeddingLoadError as exc:
        _fail(str(exc))

    store = _open_store(resolved_db)
    try:
        results = Searcher(lookup, store).rank(query, top_k=config.top_k)
    except PersistenceError as exc:
        _fail(str(exc))
    finally:
        store.close()

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Name", style="yellow")
    table.add_column("Path", style="blue")
    table.add_column("Similarity", style="green")

    for result in results:
        table.add_row(
            str(result.id), escape(result.name), escape(result.path), f"{result.similarity:.4f}"
        )

    console.print(table)
