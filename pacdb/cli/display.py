"""Display utilities for pacdb CLI.

Output modes:
- text: human-friendly package blocks and columns (default)
- json: JSON output for programmatic consumption
"""

import json
import shutil
from enum import Enum
from typing import Any, Callable, List, Optional

from . import colors
from ..core.package import Package


class DisplayMode(Enum):
    """Output display mode."""
    TEXT = "text"
    JSON = "json"


# Global display settings
_display_mode = DisplayMode.TEXT


def init(mode: str = "text"):
    """Initialize display settings."""
    global _display_mode
    _display_mode = DisplayMode(mode) if mode else DisplayMode.TEXT


def get_mode() -> DisplayMode:
    return _display_mode


def get_terminal_width() -> int:
    """Get terminal width, with fallback to 80 columns."""
    try:
        return shutil.get_terminal_size().columns
    except OSError:
        return 80


def format_columns(
    items: List[str],
    indent: int = 2,
    column_gap: int = 2,
    color_func: Optional[Callable[[str], str]] = None,
    terminal_width: Optional[int] = None
) -> List[str]:
    """Lay out items in as many columns as the terminal allows.

    Args:
        items: Strings to display
        indent: Spaces to indent
        column_gap: Gap between columns
        color_func: Optional colorize function
        terminal_width: Override terminal width (for testing)

    Returns:
        List of formatted lines ready to print
    """
    if not items:
        return []

    width = terminal_width or get_terminal_width()
    col_width = max(len(i) for i in items) + column_gap
    num_cols = max(1, (width - indent) // col_width)

    result = []
    prefix = " " * indent
    for start in range(0, len(items), num_cols):
        cols = []
        for item in items[start:start + num_cols]:
            if color_func:
                # Pad based on raw length, not colored length
                cols.append(color_func(item) + " " * (col_width - len(item)))
            else:
                cols.append(item.ljust(col_width))
        result.append(prefix + "".join(cols).rstrip())
    return result


def format_size(size_bytes: float) -> str:
    """Format bytes as human-readable size."""
    if size_bytes < 1024:
        return f"{size_bytes:.0f}B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f}KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f}MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f}GB"


def format_package(pkg: Package, terminal_width: Optional[int] = None) -> List[str]:
    """Format a package as labelled lines, list fields in columns."""
    lines = [
        f"{colors.label('Name:'.ljust(16))}{colors.package(pkg.name)}",
        f"{colors.label('Version:'.ljust(16))}{colors.version(pkg.version)}",
    ]
    scalars = [
        ('Base:', pkg.base),
        ('Description:', pkg.desc),
        ('Architecture:', pkg.arch),
        ('URL:', pkg.url),
        ('Filename:', pkg.filename),
        ('Download size:', format_size(pkg.size) if pkg.size else ''),
        ('Installed size:', format_size(pkg.isize) if pkg.isize else ''),
        ('Packager:', pkg.packager),
        ('Build date:', pkg.build_date),
        ('SHA-256:', pkg.sha256sum),
        ('Licenses:', ', '.join(pkg.licenses)),
    ]
    for title, value in scalars:
        if value:
            lines.append(f"{colors.label(title.ljust(16))}{value}")

    lists = [
        ('Provides', pkg.provides),
        ('Depends', pkg.depends),
        ('Make depends', pkg.make_depends),
        ('Optional depends', pkg.optional_depends),
        ('Check depends', pkg.check_depends),
    ]
    for title, values in lists:
        if values:
            lines.append(colors.label(f"{title} ({len(values)}):"))
            lines.extend(format_columns(values, color_func=colors.dependency,
                                        terminal_width=terminal_width))
    return lines


def print_json(data: Any) -> None:
    """Print data as JSON."""
    print(json.dumps(data, ensure_ascii=False, indent=2))
