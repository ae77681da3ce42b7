"""
Rich display components for pipeline results
"""

from typing import Any, Dict, List, Optional

from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from ...models.assignment_models import AssignmentOutline, AssignmentOutlineItem
from ...models.document_models import DocumentOutline, KnowledgePoint


def create_config_table(
    config_data: Dict[str, Any], title: str = "Configuration"
) -> Table:
    """
    Create a Rich table for configuration display
    """
    table = Table(title=title, show_header=True, header_style="bold blue")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_column("Source", style="yellow")

    for key, value_info in config_data.items():
        value = value_info.get("value")
        source = value_info.get("source", "default")

        if "api_key" in key:
            display_value = "***masked***" if value else "not set"
        else:
            display_value = "not set" if value is None else str(value)

        table.add_row(key, display_value, source)

    return table


def create_outline_tree(outline: DocumentOutline) -> Tree:
    tree = Tree(f"[bold]{outline.title}[/bold] [dim]({outline.subject})[/dim]")
    for section in outline.sections:
        branch = tree.add(f"[cyan]{section.title}[/cyan]")
        for title in section.knowledge_points:
            branch.add(title)
    return tree


def create_points_table(points: List[KnowledgePoint], max_definition: int = 80) -> Table:
    table = Table(title="Knowledge Points", show_header=True, header_style="bold blue")
    table.add_column("Title", style="cyan")
    table.add_column("Pages", style="yellow")
    table.add_column("Definition", style="green")

    for point in points:
        definition = point.definition
        if len(definition) > max_definition:
            definition = definition[:max_definition - 3] + "..."
        table.add_row(point.title, ", ".join(str(p) for p in point.source_pages), definition)

    return table


def create_assignment_tree(outline: AssignmentOutline) -> Tree:
    tree = Tree(f"[bold]{outline.title}[/bold] [dim]{outline.summary}[/dim]")

    def add_nodes(parent: Tree, nodes: List[AssignmentOutlineItem]) -> None:
        for node in nodes:
            branch = parent.add(f"[cyan]Q{node.order_num}[/cyan] {node.title}")
            add_nodes(branch, node.children)

    add_nodes(tree, outline.items)
    return tree


def create_error_display(error: Exception, context: Optional[str] = None) -> Panel:
    """
    Create formatted error display with suggestions
    """
    error_lines = []

    if context:
        error_lines.append(f"Context: {context}")
        error_lines.append("")

    error_lines.append(f"Error: {str(error)}")

    message = str(error).lower()
    suggestions = []
    if "api key" in message or "api_key" in message or "credential" in message:
        suggestions.append("Set GEMINI_API_KEY in the environment")
    if "quota" in message:
        suggestions.append("Wait for the quota to reset or use another key")
    if "configuration" in message:
        suggestions.append("Check the file with: lectern config show --config PATH")

    if suggestions:
        error_lines.append("")
        error_lines.append("Suggestions:")
        error_lines.extend(f"  - {suggestion}" for suggestion in suggestions)

    return Panel("\n".join(error_lines), title="[red]Error[/red]", border_style="red")


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format"""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs}s"
