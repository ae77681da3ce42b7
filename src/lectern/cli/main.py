"""
Main CLI entry point for Lectern
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install

from .. import __version__

# Install rich traceback handler for better error display
install(show_locals=True)

# Initialize console
console = Console()

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=console, rich_tracebacks=True)],
)


@click.group()
@click.version_option(version=__version__, prog_name="lectern")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option(
    "--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None, help="YAML configuration file",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, no_color: bool, config_path: Optional[Path]) -> None:
    """
    Lectern - Academic document knowledge extraction

    Turns per-page lecture and assignment text into knowledge points,
    outlines and retrieval chunks.

    Examples:
      lectern parse-lecture week1.json              # Knowledge points + outline
      lectern parse-assignment hw2.json -o hw2.out  # Questions with warnings
      lectern chunk week1.json --chunk-size 500     # Preview retrieval chunks
      lectern config init lectern.yaml              # Write a template config
    """
    ctx.ensure_object(dict)

    # Configure console
    if no_color:
        ctx.obj["console"] = Console(force_terminal=False, no_color=True)
    else:
        ctx.obj["console"] = console

    # Configure logging level
    if verbose:
        logging.getLogger().setLevel(logging.INFO)
        logging.getLogger("lectern").setLevel(logging.DEBUG)
        ctx.obj["verbose"] = True
    else:
        ctx.obj["verbose"] = False

    # Store global options
    ctx.obj["no_color"] = no_color
    ctx.obj["config_path"] = config_path


# Import and register commands at module level to support testing
from .commands import chunk, config, parse  # noqa: E402

cli.add_command(parse.parse_lecture)
cli.add_command(parse.parse_assignment)
cli.add_command(chunk.chunk)
cli.add_command(config.config)


def main() -> None:
    """Main entry point for the CLI application"""
    try:
        # Run CLI (commands already registered)
        cli()

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if "--verbose" in sys.argv or "-v" in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
