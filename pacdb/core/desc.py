"""
desc record parser for pacdb

A desc record is a sequence of blocks, each a `%KEY%` header line followed
by one value per line and closed by a blank line or the next header.
Leading whitespace of a value line is dropped:

    %NAME%
    supertux

    %DEPENDS%
    curl
    openal

Parsing is lossy on malformed input: the tokenizer stops at the first
position where no header can be matched and never raises.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .errors import PackageParseSizeError, PackagePropertyMissingError
from .package import Package

logger = logging.getLogger(__name__)

HEADER_RE = re.compile(r'%([A-Za-z0-9]+)%')
UINT64_RE = re.compile(r'\+?[0-9]+')
UINT64_MAX = 2 ** 64 - 1


@dataclass(frozen=True)
class Token:
    """One `%KEY%` block: the key as written and its value lines in order."""
    key: str
    values: List[str]


class UnknownKeyPolicy(Enum):
    """What the record builder does with a key it does not recognize."""
    ERROR = "error"    # abort the record with PackagePropertyMissingError
    IGNORE = "ignore"  # skip the token


# Field kinds
STR = 'str'
SIZE = 'size'
LIST = 'list'

# Lower-cased desc key -> (Package field, kind)
FIELDS: Dict[str, Tuple[str, str]] = {
    'name': ('name', STR),
    'base': ('base', STR),
    'filename': ('filename', STR),
    'version': ('version', STR),
    'desc': ('desc', STR),
    'url': ('url', STR),
    'csize': ('size', SIZE),
    'isize': ('isize', SIZE),
    'arch': ('arch', STR),
    'md5sum': ('md5sum', STR),
    'sha256sum': ('sha256sum', STR),
    'pgpsig': ('pgpsig', STR),
    'builddate': ('build_date', STR),
    'build_date': ('build_date', STR),
    'packager': ('packager', STR),
    'license': ('licenses', LIST),
    'provides': ('provides', LIST),
    'depends': ('depends', LIST),
    'makedepends': ('make_depends', LIST),
    'optionaldepends': ('optional_depends', LIST),
    'checkdepends': ('check_depends', LIST),
}


def _iter_lines(text: str) -> Iterator[str]:
    """Yield the lines of text lazily, without the newline and trailing CRs."""
    pos = 0
    end = len(text)
    while pos < end:
        nl = text.find('\n', pos)
        if nl == -1:
            yield text[pos:].rstrip('\r')
            return
        yield text[pos:nl].rstrip('\r')
        pos = nl + 1


def _is_blank(line: str) -> bool:
    return not line.strip()


def tokenize(text: str) -> Iterator[Token]:
    """Split a desc record into tokens, in document order.

    Stops quietly at the first place where no `%KEY%` header followed by
    at least one value line can be read.

    Args:
        text: Decoded desc record

    Yields:
        Token objects
    """
    lines = _iter_lines(text)
    line = next(lines, None)

    while True:
        while line is not None and _is_blank(line):
            line = next(lines, None)
        if line is None:
            return

        match = HEADER_RE.fullmatch(line)
        if not match:
            logger.debug(f"Stopping at malformed header line: {line!r}")
            return

        values = []
        line = next(lines, None)
        while line is not None and not _is_blank(line):
            if HEADER_RE.fullmatch(line):
                break
            values.append(line.lstrip())
            line = next(lines, None)

        if not values:
            logger.debug(f"Stopping at header without values: %{match.group(1)}%")
            return

        yield Token(match.group(1), values)


def parse_size(key: str, value: str) -> int:
    """Parse an unsigned 64-bit integer field value.

    Raises:
        PackageParseSizeError: If value is not a decimal in [0, 2**64),
            optionally signed with "+"
    """
    if not UINT64_RE.fullmatch(value):
        raise PackageParseSizeError(key, value)
    number = int(value)
    if number > UINT64_MAX:
        raise PackageParseSizeError(key, value)
    return number


def build_package(tokens: Iterable[Token],
                  policy: UnknownKeyPolicy = UnknownKeyPolicy.ERROR) -> Package:
    """Fold tokens into a Package, starting from an all-default record.

    A repeated key replaces the earlier value, list fields included.
    Missing keys leave the field at its default.

    Args:
        tokens: Tokens in document order
        policy: How to treat unrecognized keys

    Returns:
        The built Package

    Raises:
        PackagePropertyMissingError: Unrecognized key under UnknownKeyPolicy.ERROR
        PackageParseSizeError: CSIZE/ISIZE value is not an unsigned 64-bit integer
    """
    fields: Dict[str, Union[str, int, List[str]]] = {}

    for token in tokens:
        target = FIELDS.get(token.key.lower())
        if target is None:
            if policy is UnknownKeyPolicy.IGNORE:
                logger.debug(f"Ignoring unknown key %{token.key}%")
                continue
            raise PackagePropertyMissingError(token.key)

        if not token.values:
            continue

        attr, kind = target
        if kind == STR:
            fields[attr] = token.values[0]
        elif kind == SIZE:
            fields[attr] = parse_size(token.key, token.values[0])
        else:
            fields[attr] = list(token.values)

    return Package(**fields)


def parse_desc(text: str, policy: Optional[UnknownKeyPolicy] = None) -> Package:
    """Parse the text of a desc record into a Package."""
    return build_package(tokenize(text), policy or UnknownKeyPolicy.ERROR)
