"""
Shared utilities for Placemark.
"""

from .utils import format_bytes, parse_id_list, setup_logging

__all__ = [
    "format_bytes",
    "parse_id_list",
    "setup_logging",
]
