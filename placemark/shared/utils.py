"""
Shared helpers for logging and display formatting.
"""

import logging
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def format_bytes(size_bytes: int) -> str:
    """Render a byte count with two decimals in the largest fitting unit."""
    if size_bytes == 0:
        return "0 B"

    size = float(size_bytes)
    for unit in _SIZE_UNITS[:-1]:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} {_SIZE_UNITS[-1]}"


def parse_id_list(value: Optional[str]) -> List[int]:
    """
    Parse a comma separated list of photo IDs ("1,2, 5").

    Raises:
        ValueError: If an entry is not an integer
    """
    if not value:
        return []
    return [int(part) for part in value.split(",") if part.strip()]


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    console: Optional[Console] = None,
) -> None:
    """Route log records through a rich handler; quiet wins over verbose."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )
