"""Command-line interface for the world book retrieval pipeline.

Commands:
- vectorize: Chunk, embed and store a world book JSON file
- search: Semantic search over a collection, optionally reranked
- chunk: Show how a world book would be chunked, without embedding
- delete-records: Delete points from a collection
- delete-collection: Delete a whole collection
- providers: List configured embedding providers
- info: Show system information
"""

import asyncio
import json
from collections import Counter
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from semantix.config.loader import get_default_config_path, load_config
from semantix.config.schema import AppConfig
from semantix.core.chunking import InvalidConfigurationError, process_world_book
from semantix.entities import InvalidDocumentError, PointId, WorldBook
from semantix.observability.logging import configure_logging, get_logger
from semantix.pipelines.query import QueryError
from semantix.providers.base import ProviderError
from semantix.service.orchestrator import InvalidRequestError, RetrievalOrchestrator
from semantix.storage.base import VectorStoreError

app = typer.Typer(
    name="semantix",
    help="World book vectorization, semantic search and reranking",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

# Failures reported to the user with exit code 1
_OPERATION_ERRORS = (
    InvalidConfigurationError,
    InvalidRequestError,
    ProviderError,
    QueryError,
    VectorStoreError,
)


def _create_orchestrator(config: AppConfig) -> RetrievalOrchestrator:
    """Create an orchestrator over the configured vector store."""
    try:
        return RetrievalOrchestrator.from_config(config)
    except ValueError as e:
        console.print(f"[red]Error initializing vector store: {str(e)}[/red]")
        raise typer.Exit(1)


def _read_world_book_file(path: Path) -> dict[str, Any]:
    """Read a world book JSON file, exiting with code 2 when it is unusable."""
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(2)

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        console.print(f"[red]Cannot read world book file {path}: {str(e)}[/red]")
        raise typer.Exit(2)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        console.print(f"[red]Invalid world book file {path}: {str(e)}[/red]")
        raise typer.Exit(2)


def _parse_point_id(raw: str) -> PointId:
    """Numeric ids stay integers, anything else is passed through as text."""
    return int(raw) if raw.isdigit() else raw


@app.command()
def vectorize(
    path: Path = typer.Argument(..., help="World book JSON file"),
    collection: Optional[str] = typer.Option(None, "--collection", help="Target collection (default worldbook_<epoch ms>)"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Embedding provider name"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", help="Window size in characters"),
    overlap: Optional[int] = typer.Option(None, "--overlap", help="Overlap between windows in characters"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Vectorize a world book and store it in a collection."""
    asyncio.run(_vectorize_async(path, collection, provider, chunk_size, overlap, config_file))


async def _vectorize_async(
    path: Path,
    collection: Optional[str],
    provider: Optional[str],
    chunk_size: Optional[int],
    overlap: Optional[int],
    config_file: Optional[Path],
):
    """Async implementation of vectorize command."""
    config = _load_config(config_file)
    document = _read_world_book_file(path)
    orchestrator = _create_orchestrator(config)

    try:
        console.print(f"[cyan]Vectorizing {path.name}...[/cyan]")
        result = await orchestrator.vectorize_and_store(
            document,
            collection_name=collection,
            provider=provider,
            chunk_size=chunk_size,
            overlap_size=overlap,
        )
    except InvalidDocumentError as e:
        console.print(f"[red]Invalid world book: {e.message}[/red]")
        raise typer.Exit(2)
    except _OPERATION_ERRORS as e:
        console.print(f"[red]Vectorization error: {str(e)}[/red]")
        logger.error("vectorize_failed", error=str(e), exc_info=True)
        raise typer.Exit(1)
    finally:
        await orchestrator.close()

    console.print(f"[green]✓ Stored {result.points_stored} point(s) in '{result.collection_name}'[/green]")
    console.print(f"  Chunks processed: {result.chunks_processed}")
    if result.failed_chunks:
        console.print(f"  [yellow]Chunks without embedding: {result.failed_chunks}[/yellow]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    collection: str = typer.Option(..., "--collection", help="Collection to search"),
    limit: int = typer.Option(10, "--limit", "-k", help="Number of results"),
    rerank: bool = typer.Option(False, "--rerank", help="Rerank candidates with the rerank provider"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Embedding provider name"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Perform semantic search over a collection."""
    asyncio.run(_search_async(query, collection, limit, rerank, provider, json_output, config_file))


async def _search_async(
    query: str,
    collection: str,
    limit: int,
    rerank: bool,
    provider: Optional[str],
    json_output: bool,
    config_file: Optional[Path],
):
    """Async implementation of search command."""
    config = _load_config(config_file)
    orchestrator = _create_orchestrator(config)

    try:
        results = await orchestrator.search(
            query,
            collection,
            limit=limit,
            rerank=rerank,
            provider=provider,
        )
    except _OPERATION_ERRORS as e:
        console.print(f"[red]Search error: {str(e)}[/red]")
        logger.error("search_failed", error=str(e), exc_info=True)
        raise typer.Exit(1)
    finally:
        await orchestrator.close()

    if json_output:
        console.print_json(json.dumps({"results": results}, ensure_ascii=False))
        return

    if not results:
        console.print("[yellow]No results found[/yellow]")
        return

    console.print(f"\n[green]Found {len(results)} result(s):[/green]\n")
    for i, result in enumerate(results, 1):
        payload = result.get("payload", {})
        score_line = f"Score: {result['score']:.4f}"
        if "rerank_score" in result:
            score_line += f"  Rerank: {result['rerank_score']:.4f}"
        console.print(f"[bold cyan]{i}. {score_line}[/bold cyan]")
        console.print(f"   Entry: {payload.get('uid')} ({payload.get('chunkType')} #{payload.get('chunkIndex')})")
        if payload.get("comment"):
            console.print(f"   Comment: {payload['comment'][:120]}")
        if payload.get("content"):
            console.print(f"   Content: {payload['content'][:200]}")
        console.print()


@app.command()
def chunk(
    path: Path = typer.Argument(..., help="World book JSON file"),
    size: Optional[int] = typer.Option(None, "--size", "-s", help="Window size in characters"),
    overlap: Optional[int] = typer.Option(None, "--overlap", "-o", help="Overlap between windows in characters"),
    json_output: bool = typer.Option(False, "--json", help="Output chunks as JSON"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Show how a world book is chunked, without embedding or storing it."""
    config = _load_config(config_file)
    chunk_size = size if size is not None else config.default_chunk_size
    overlap_size = overlap if overlap is not None else config.default_overlap_size

    document = _read_world_book_file(path)
    try:
        chunks = process_world_book(WorldBook.from_dict(document), chunk_size, overlap_size)
    except InvalidDocumentError as e:
        console.print(f"[red]Invalid world book: {e.message}[/red]")
        raise typer.Exit(2)
    except InvalidConfigurationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    if json_output:
        payloads = [c.to_payload() for c in chunks]
        console.print_json(json.dumps({"chunks": payloads}, ensure_ascii=False))
        return

    if not chunks:
        console.print("[yellow]No chunks were created from this world book[/yellow]")
        return

    console.print(f"[green]✓ Created {len(chunks)} chunk(s)[/green]\n")

    type_counts = Counter(c.chunk_type.value for c in chunks)
    console.print("[bold]Statistics:[/bold]")
    console.print(f"  Total chunks: {len(chunks)}")
    for chunk_type, count in sorted(type_counts.items()):
        console.print(f"  {chunk_type}: {count}")
    console.print(f"  Chunk size used: {chunk_size}")
    console.print(f"  Overlap used: {overlap_size}")
    console.print()

    table = Table(title="Chunk Analysis Results")
    table.add_column("Entry", style="cyan", no_wrap=True)
    table.add_column("Index", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta", no_wrap=True)
    table.add_column("Size", style="yellow", no_wrap=True)
    table.add_column("Text", style="white")

    for c in chunks:
        text = c.content if c.content else c.comment
        preview = text[:60].replace("\n", " ")
        table.add_row(str(c.uid), str(c.chunk_index), c.chunk_type.value, str(len(text)), preview)

    console.print(table)


@app.command("delete-records")
def delete_records(
    collection: str = typer.Argument(..., help="Collection name"),
    ids: list[str] = typer.Argument(..., help="Point ids to delete"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Delete points from a collection by id."""
    asyncio.run(_delete_records_async(collection, ids, config_file))


async def _delete_records_async(collection: str, ids: list[str], config_file: Optional[Path]):
    """Async implementation of delete-records command."""
    config = _load_config(config_file)
    orchestrator = _create_orchestrator(config)

    try:
        await orchestrator.delete_records(collection, [_parse_point_id(i) for i in ids])
    except _OPERATION_ERRORS as e:
        console.print(f"[red]Delete error: {str(e)}[/red]")
        raise typer.Exit(1)
    finally:
        await orchestrator.close()

    console.print(f"[green]✓ Deleted {len(ids)} record(s) from '{collection}'[/green]")


@app.command("delete-collection")
def delete_collection(
    name: str = typer.Argument(..., help="Collection name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Delete a whole collection."""
    if not yes and not typer.confirm(f"Delete collection '{name}' and all its points?"):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(0)

    asyncio.run(_delete_collection_async(name, config_file))


async def _delete_collection_async(name: str, config_file: Optional[Path]):
    """Async implementation of delete-collection command."""
    config = _load_config(config_file)
    orchestrator = _create_orchestrator(config)

    try:
        await orchestrator.delete_collection(name)
    except _OPERATION_ERRORS as e:
        console.print(f"[red]Delete error: {str(e)}[/red]")
        raise typer.Exit(1)
    finally:
        await orchestrator.close()

    console.print(f"[green]✓ Deleted collection '{name}'[/green]")


@app.command()
def providers(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """List configured embedding providers."""
    config = _load_config(config_file)

    table = Table(title="Embedding Providers")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Kind", style="magenta")
    table.add_column("Embedding URL", style="blue")
    table.add_column("Model", style="green")
    table.add_column("Auth", style="yellow")

    for name, profile in sorted(config.providers.items()):
        marker = " (default)" if name == config.default_provider else ""
        table.add_row(
            f"{name}{marker}",
            profile.kind.value,
            profile.embedding_url,
            profile.model_name,
            "api key" if profile.api_key else "-",
        )

    console.print(table)


@app.command()
def info(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Show system information and configuration."""
    config = _load_config(config_file)

    table = Table(title="Semantix System Information")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Log Level", config.log_level.value)
    table.add_row("Default Provider", config.default_provider)
    table.add_row("Rerank Provider", config.rerank_provider_name)
    table.add_row("Chunk Size", str(config.default_chunk_size))
    table.add_row("Overlap Size", str(config.default_overlap_size))
    table.add_row("Embedding Concurrency", str(config.embedding_concurrency))
    table.add_row("Distance Metric", config.distance_metric.value)
    table.add_row("Vector Store", config.vector_store.store_type.value)
    table.add_row("Vector Store URL", config.vector_store.url)

    console.print(table)


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load configuration and setup logging."""
    if config_file is None:
        config_file = get_default_config_path()

    config = load_config(config_file)
    configure_logging(level=config.log_level, json_logs=config.json_logs)

    return config


if __name__ == "__main__":
    app()
