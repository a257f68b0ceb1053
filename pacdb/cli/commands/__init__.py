"""CLI command modules."""

from .query import (
    cmd_dump,
    cmd_info,
    cmd_list,
)

__all__ = ['cmd_dump', 'cmd_info', 'cmd_list']
