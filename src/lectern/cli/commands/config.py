"""
Configuration management commands
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.panel import Panel

from ...core.config_manager import ENV_OVERRIDES, STRING_OVERRIDES, ConfigManager
from ...core.error_classifier import ConfigurationError
from ..ui.display import create_config_table, create_error_display


def _env_names() -> Dict[str, str]:
    names = {}
    for env_name, (section, field_name, _) in ENV_OVERRIDES.items():
        names[f"{section}.{field_name}" if section else field_name] = env_name
    for env_name, (section, field_name) in STRING_OVERRIDES.items():
        names[f"{section}.{field_name}" if section else field_name] = env_name
    return names


def _get_value_source(env_name: Optional[str], config_path: Optional[Path]) -> str:
    if env_name and os.getenv(env_name):
        return f"environment ({env_name})"
    if config_path:
        return "config file"
    return "default"


@click.group()
def config() -> None:
    """
    Configuration management commands.

    Inspect the effective pipeline configuration or write a template
    YAML file to edit.
    """
    pass


@config.command()
@click.pass_context
def show(ctx: click.Context) -> None:
    """
    Display current configuration with sources.

    Values come from the --config file, RAG_*/GEMINI_* environment
    variables, or defaults. API keys are masked.
    """
    console: Console = ctx.obj["console"]
    config_path: Optional[Path] = ctx.obj.get("config_path")

    try:
        settings = ConfigManager().load_config(config_path)
    except ConfigurationError as e:
        console.print(create_error_display(e, "Configuration Error"))
        ctx.exit(1)

    env_names = _env_names()
    config_data: Dict[str, Dict[str, Any]] = {}
    for section_name, section in settings.model_dump().items():
        if not isinstance(section, dict):
            config_data[section_name] = {
                "value": section,
                "source": _get_value_source(env_names.get(section_name), config_path),
            }
            continue
        for field_name, value in section.items():
            key = f"{section_name}.{field_name}"
            config_data[key] = {
                "value": value,
                "source": _get_value_source(env_names.get(key), config_path),
            }

    console.print(create_config_table(config_data, "Lectern Configuration"))
    if config_path:
        console.print(f"\n[dim]Configuration file: {config_path}[/dim]")


@config.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def init(ctx: click.Context, path: Path) -> None:
    """
    Write a template configuration file to PATH.

    API keys are written as ${GEMINI_API_KEY}/${VOYAGE_API_KEY}
    placeholders and resolved from the environment at load time.
    """
    console: Console = ctx.obj["console"]

    try:
        ConfigManager().create_template_config(path)
    except ConfigurationError as e:
        console.print(create_error_display(e, "Configuration Error"))
        ctx.exit(1)

    console.print(
        Panel(
            f"Template configuration written to {path}\n\n"
            f"Use it with: lectern --config {path} parse-lecture PAGES_JSON",
            title="[green]Configuration Created[/green]",
            border_style="green",
        )
    )
