"""
Chunking command
"""

import json
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ...ingestion.chunking_engine import ChunkingEngine
from ..utils.validation import load_pages_file, show_validation_error, validate_chunk_parameters


@click.command()
@click.argument("pages_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--chunk-size", type=int, default=1000, show_default=True, help="Maximum characters per chunk")
@click.option("--chunk-overlap", type=int, default=200, show_default=True, help="Characters shared by adjacent chunks")
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Write chunks as JSON",
)
@click.pass_context
def chunk(
    ctx: click.Context,
    pages_json: Path,
    chunk_size: int,
    chunk_overlap: int,
    output: Optional[Path],
) -> None:
    """
    Split pages into overlapping chunks tagged with their page number.

    Examples:
      lectern chunk week1.json
      lectern chunk week1.json --chunk-size 500 --chunk-overlap 50
    """
    console: Console = ctx.obj["console"]

    is_valid, error = validate_chunk_parameters(chunk_size, chunk_overlap)
    if not is_valid:
        show_validation_error(console, error or "Invalid chunk parameters")
        ctx.exit(1)

    pages, error = load_pages_file(pages_json)
    if error:
        show_validation_error(console, error)
        ctx.exit(1)

    chunks = ChunkingEngine(chunk_size, chunk_overlap).chunk_pages(pages)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            json.dump([c.to_dict() for c in chunks], f, ensure_ascii=False, indent=2)
        console.print(f"[green]Saved {len(chunks)} chunks to {output}[/green]")
        return

    table = Table(title=f"Chunks ({len(chunks)})", show_header=True, header_style="bold blue")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Page", style="yellow", justify="right")
    table.add_column("Length", style="cyan", justify="right")
    table.add_column("Preview", style="green")
    for index, item in enumerate(chunks):
        preview = item.content.replace("\n", " ")
        if len(preview) > 60:
            preview = preview[:57] + "..."
        table.add_row(str(index), str(item.page), str(len(item.content)), preview)
    console.print(table)
