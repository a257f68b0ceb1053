"""Terminal styling for pacdb output.

Styles are named after what they mark, not after a color:

  - package: package names
  - version: version strings
  - label: field labels of `pacdb info`
  - dependency: entries of license, provides and depends lists
  - error, warning: messages on stderr

Styling is off under --nocolor, when NO_COLOR is set, or when the
output is not a terminal.
"""

import os
import sys
from typing import Optional, TextIO

RESET = '\033[0m'

# Role -> ANSI SGR sequence
STYLES = {
    'package': '\033[1;92m',    # bold green
    'version': '\033[94m',      # blue
    'label': '\033[1m',         # bold
    'dependency': '\033[36m',   # cyan
    'error': '\033[91m',        # red
    'warning': '\033[93m',      # yellow
}

_enabled = True


def init(nocolor: bool = False, stream: Optional[TextIO] = None):
    """Decide once whether output is styled.

    Args:
        nocolor: Disable styling unconditionally
        stream: Stream the output goes to (default: sys.stdout)
    """
    global _enabled
    stream = stream if stream is not None else sys.stdout

    if nocolor or os.environ.get('NO_COLOR'):
        # https://no-color.org/
        _enabled = False
    else:
        _enabled = stream.isatty()


def style(text: str, role: str) -> str:
    """Wrap text in the escape sequence of a role, when styling is on."""
    if not _enabled:
        return text
    return f"{STYLES[role]}{text}{RESET}"


def package(name: str) -> str:
    return style(name, 'package')


def version(text: str) -> str:
    return style(text, 'version')


def label(text: str) -> str:
    return style(text, 'label')


def dependency(text: str) -> str:
    return style(text, 'dependency')


def error(text: str) -> str:
    return style(text, 'error')


def warning(text: str) -> str:
    return style(text, 'warning')


def package_line(name: str, ver: str) -> str:
    """One `name version` line, as printed by `pacdb list`."""
    if not ver:
        return package(name)
    return f"{package(name)} {version(ver)}"
