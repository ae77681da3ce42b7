"""
Input validation utilities for CLI commands
"""

import json
from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console

from ...models.document_models import Page


def load_pages_file(pages_path: Path) -> Tuple[Optional[List[Page]], Optional[str]]:
    """
    Load a JSON list of ``{"page": int, "text": str}`` objects

    Returns:
        (pages, error_message)
    """
    try:
        with open(pages_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        return None, f"Cannot read pages file {pages_path}: {e}"

    if isinstance(data, dict):
        data = data.get("pages")
    if not isinstance(data, list):
        return None, "Pages file must contain a JSON list of page objects"

    pages = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            return None, f"Page entry {index} is not an object"
        try:
            pages.append(Page.from_dict(entry))
        except (TypeError, ValueError) as e:
            return None, f"Invalid page entry {index}: {e}"

    if not pages:
        return None, "Pages file contains no pages"

    pages.sort(key=lambda page: page.page_number)
    return pages, None


def validate_chunk_parameters(chunk_size: int, chunk_overlap: int) -> Tuple[bool, Optional[str]]:
    """
    Validate chunk size and overlap

    Returns:
        (is_valid, error_message)
    """
    if chunk_size <= 0:
        return False, "Chunk size must be positive"
    if chunk_overlap < 0:
        return False, "Chunk overlap cannot be negative"
    if chunk_overlap >= chunk_size:
        return False, "Chunk overlap must be smaller than chunk size"
    return True, None


def show_validation_error(console: Console, error_message: str) -> None:
    console.print(f"[red]Validation error: {error_message}[/red]")
