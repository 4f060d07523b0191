"""Utility modules for refuse.

This module exports commonly used utility functions.
"""

from refuse.utils.formatting import (
    console,
    create_entry_table,
    err_console,
    format_entry_row,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from refuse.utils.units import format_age, format_size, parse_duration, parse_size

__all__ = [
    "console",
    "create_entry_table",
    "err_console",
    "format_age",
    "format_entry_row",
    "format_size",
    "parse_duration",
    "parse_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
