"""
Document parsing commands
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
from rich.console import Console

from ...core.config_manager import ConfigManager
from ...core.error_classifier import ConfigurationError
from ...ingestion.pipeline import AssignmentPipeline, LecturePipeline
from ...integration.gemini_client import GeminiEmbeddingService, GeminiOracle
from ...models.config_models import LecternConfig
from ...models.service_models import IEmbeddingService, ITextOracle, PipelineProgress
from ..ui.display import (
    create_assignment_tree,
    create_error_display,
    create_outline_tree,
    create_points_table,
    format_duration,
)
from ..utils.async_runner import async_command
from ..utils.validation import load_pages_file, show_validation_error


def build_services(config: LecternConfig) -> Tuple[ITextOracle, IEmbeddingService]:
    """Create the oracle and embedding service used by the pipelines."""
    oracle = GeminiOracle(config.oracle)
    embedder = GeminiEmbeddingService(
        config.oracle,
        dimension=config.retrieval.embedding_dimension,
        client=oracle.client,
    )
    return oracle, embedder


def load_cli_config(ctx: click.Context) -> LecternConfig:
    config_path: Optional[Path] = ctx.obj.get("config_path")
    return ConfigManager().load_config(config_path)


def _write_output(output: Path, payload: Dict[str, Any]) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def _progress_printer(console: Console, verbose: bool):
    def on_progress(progress: PipelineProgress) -> None:
        if verbose:
            console.print(
                f"[dim][{progress.total_progress:3d}%] {progress.phase}: {progress.detail}[/dim]"
            )

    return on_progress


@click.command("parse-lecture")
@click.argument("pages_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--document-id", "-d", default=None, help="Document identifier (defaults to file name)")
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Write the full result as JSON",
)
@click.pass_context
@async_command
async def parse_lecture(
    ctx: click.Context, pages_json: Path, document_id: Optional[str], output: Optional[Path]
) -> None:
    """
    Extract knowledge points and an outline from lecture pages.

    PAGES_JSON is a JSON list of {"page": int, "text": str} objects.

    Examples:
      lectern parse-lecture week1.json
      lectern parse-lecture week1.json --output week1.result.json
    """
    console: Console = ctx.obj["console"]

    pages, error = load_pages_file(pages_json)
    if error:
        show_validation_error(console, error)
        ctx.exit(1)

    try:
        config = load_cli_config(ctx)
        oracle, embedder = build_services(config)
    except ConfigurationError as e:
        console.print(create_error_display(e, "Configuration Error"))
        ctx.exit(1)

    document_id = document_id or pages_json.stem
    pipeline = LecturePipeline(oracle, embedder, config)
    with console.status(f"[bold green]Processing {document_id} ({len(pages)} pages)..."):
        result = await pipeline.process(
            document_id, pages, on_progress=_progress_printer(console, ctx.obj["verbose"])
        )

    if output:
        _write_output(output, result.to_dict())
        console.print(f"[green]Saved results to {output}[/green]")

    if not result.success:
        console.print(
            create_error_display(
                Exception(result.error_message or "Unknown error"),
                f"Processing failed at stage '{result.failed_stage}' ({result.error_code})",
            )
        )
        ctx.exit(1)

    if result.outline:
        console.print(create_outline_tree(result.outline))
    console.print(create_points_table(result.knowledge_points))
    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")
    console.print(
        f"\n[green]Extracted {len(result.knowledge_points)} knowledge points "
        f"({result.raw_point_count} before quality gate) in "
        f"{format_duration(result.processing_time)}[/green]"
    )


@click.command("parse-assignment")
@click.argument("pages_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--assignment-id", "-a", default=None, help="Assignment identifier (defaults to file name)")
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Write the full result as JSON",
)
@click.pass_context
@async_command
async def parse_assignment(
    ctx: click.Context, pages_json: Path, assignment_id: Optional[str], output: Optional[Path]
) -> None:
    """
    Extract questions from assignment or exam pages.

    Each item is checked for numbering gaps, missing answers, broken
    formulas and duplicates; problems are reported as warnings.
    """
    console: Console = ctx.obj["console"]

    pages, error = load_pages_file(pages_json)
    if error:
        show_validation_error(console, error)
        ctx.exit(1)

    try:
        config = load_cli_config(ctx)
        oracle, _ = build_services(config)
    except ConfigurationError as e:
        console.print(create_error_display(e, "Configuration Error"))
        ctx.exit(1)

    assignment_id = assignment_id or pages_json.stem
    pipeline = AssignmentPipeline(oracle)
    with console.status(f"[bold green]Parsing {assignment_id} ({len(pages)} pages)..."):
        outcome = await pipeline.process(
            assignment_id, pages, on_progress=_progress_printer(console, ctx.obj["verbose"])
        )

    if output:
        _write_output(output, outcome.to_dict())
        console.print(f"[green]Saved results to {output}[/green]")

    if not outcome.success or outcome.result is None:
        console.print(
            create_error_display(
                Exception(outcome.error_message or "Unknown error"),
                f"Assignment parsing failed ({outcome.error_code})",
            )
        )
        ctx.exit(1)

    parsed = outcome.result
    console.print(create_assignment_tree(parsed.outline))
    for item in parsed.items:
        for warning in item.warnings:
            console.print(f"[yellow]Q{item.order_num}: {warning}[/yellow]")
    for warning in parsed.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")
    console.print(
        f"\n[green]Parsed {len(parsed.items)} items in "
        f"{format_duration(outcome.processing_time)}[/green]"
    )
