"""Errors raised or reported while reading a pacman sync database.

Source-wide failures (database missing, unreadable, undecompressable) are
fatal for an iteration. Failures tied to one package record are local:
the package iterator hands them back as that record's item and keeps going.
"""

from pathlib import Path
from typing import Union


class PacdbError(Exception):
    """Base class for every pacdb error."""


class DatabaseNotFoundError(PacdbError):
    """The resolved database path does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"failed to find database: {name}")


class DatabaseLoadError(PacdbError):
    """The database file could not be opened or decompressed."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"failed to load database: {self.path}")


class DatabaseIterationError(PacdbError):
    """The archive walk over the database could not be built or continued."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"failed to construct database iterator: {self.path}")


class PackageNotFoundError(PacdbError):
    """No package with the requested name exists in the database."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"failed to find package: {name}")


class PackageParseSizeError(PacdbError):
    """An integer field of a package record is not an unsigned 64-bit value."""

    def __init__(self, key: str, value: str):
        self.key = key
        self.value = value
        super().__init__(
            f"package parse failure while parsing integers: %{key}% = {value!r}"
        )


class PackagePropertyMissingError(PacdbError):
    """A package record carries a key the record builder does not know."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"package property missing: {key}")


class PackageUtf8ConversionError(PacdbError):
    """A desc entry could not be decoded as UTF-8."""

    def __init__(self, package: str):
        self.package = package
        super().__init__(f"package utf8 conversion failed after extraction: {package}")


# Errors that end an iteration; every other PacdbError is local to one package
FATAL_ERRORS = (DatabaseLoadError, DatabaseIterationError)
