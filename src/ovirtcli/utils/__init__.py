"""Utility functions and helpers."""

from .helpers import async_to_sync, ordered_group
from .logging import configure_logging
from .output import (
    confirm,
    console,
    create_table,
    format_bytes,
    print_cancelled,
    print_data,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "async_to_sync",
    "configure_logging",
    "confirm",
    "console",
    "create_table",
    "format_bytes",
    "ordered_group",
    "print_cancelled",
    "print_data",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
