"""
Sync database access for pacdb

Resolves a database name to its file and iterates over its packages:

    db = Database.load('core')
    for item in db.packages():
        if isinstance(item, PacdbError):
            ...   # one bad record, or the final report of a broken archive
        else:
            print(item.name, item.version)

Each pull reads the next desc entry of the archive and nothing more.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Union

from .archive import ArchiveReader, EntryFilter
from .config import DB_SUFFIX, SYNC_SUBDIR, DatabaseConfig
from .desc import UnknownKeyPolicy, parse_desc
from .errors import (
    FATAL_ERRORS,
    DatabaseNotFoundError,
    PacdbError,
    PackageNotFoundError,
    PackageUtf8ConversionError,
)
from .package import Package

logger = logging.getLogger(__name__)

PackageResult = Union[Package, PacdbError]


class IteratorState(Enum):
    UNINITIALIZED = "uninitialized"
    STREAMING = "streaming"
    EXHAUSTED = "exhausted"


class PackageIterator:
    """Lazy sequence of package results from one database archive.

    Yields a Package per desc entry, or the PacdbError that prevented
    building it. Errors in one record do not stop the iteration; a
    DatabaseLoadError or DatabaseIterationError is yielded once and ends it.
    The archive is opened on the first pull and closed when the iterator
    is exhausted, closed, or garbage collected.
    """

    def __init__(self, path: Union[str, Path],
                 policy: UnknownKeyPolicy = UnknownKeyPolicy.ERROR):
        self.path = Path(path)
        self.policy = policy
        self.state = IteratorState.UNINITIALIZED
        self._reader: Optional[ArchiveReader] = None
        self._entries: Optional[EntryFilter] = None

    def __iter__(self) -> Iterator[PackageResult]:
        return self

    def __next__(self) -> PackageResult:
        if self.state is IteratorState.EXHAUSTED:
            raise StopIteration

        if self.state is IteratorState.UNINITIALIZED:
            self._reader = ArchiveReader(self.path)
            self._entries = EntryFilter(self._reader)
            self.state = IteratorState.STREAMING

        try:
            entry = next(self._entries)
            data = entry.read()
        except StopIteration:
            self.close()
            raise
        except FATAL_ERRORS as e:
            logger.debug(f"Database {self.path} failed: {e}")
            self.close()
            return e

        package_dir = self._entries.current_package
        try:
            text = data.decode('utf-8')
        except UnicodeDecodeError:
            return PackageUtf8ConversionError(package_dir)

        try:
            return parse_desc(text, self.policy)
        except PacdbError as e:
            logger.debug(f"{package_dir}: {e}")
            return e

    def packages(self) -> Iterator[Package]:
        """Yield only the packages that were built successfully.

        Local failures are logged and skipped.

        Raises:
            DatabaseLoadError: If the archive cannot be opened
            DatabaseIterationError: If the archive walk fails
        """
        for item in self:
            if isinstance(item, FATAL_ERRORS):
                raise item
            if isinstance(item, PacdbError):
                logger.warning(f"Skipping package: {item}")
                continue
            yield item

    def close(self):
        """Release the archive; the iterator yields nothing afterwards."""
        self.state = IteratorState.EXHAUSTED
        if self._reader is not None:
            self._reader.close()
        self._reader = None
        self._entries = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __del__(self):
        reader = getattr(self, "_reader", None)
        if reader is not None:
            reader.close()


def resolve_db_path(name: str, db_dir: Union[str, Path]) -> Path:
    """Resolve a database name to its file under db_dir.

    Looks for <db_dir>/sync/<name>.db (pacman layout) then <db_dir>/<name>.db
    (flat mirror layout). Returns the pacman path when neither exists.
    """
    db_dir = Path(db_dir)
    filename = f"{name.lower()}{DB_SUFFIX}"
    candidates = [db_dir / SYNC_SUBDIR / filename, db_dir / filename]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return candidates[0]


class Database:
    """A named sync database (core, extra, multilib, ...)."""

    def __init__(self, name: str, config: Optional[DatabaseConfig] = None):
        self.name = name.lower()
        self.config = config or DatabaseConfig()
        self.path = resolve_db_path(self.name, self.config.db_dir)

    @classmethod
    def load(cls, name: str, db_dir: Optional[Union[str, Path]] = None,
             config: Optional[DatabaseConfig] = None) -> 'Database':
        """Load a database by name.

        Args:
            name: Database name, case-insensitive (e.g. 'core')
            db_dir: Base directory, overriding the config (default: /var/lib/pacman)
            config: Database configuration

        Raises:
            DatabaseNotFoundError: If no database file exists for name
        """
        config = config or DatabaseConfig()
        if db_dir is not None:
            config = config.with_dir(db_dir)
        db = cls(name, config)
        if not db.path.is_file():
            raise DatabaseNotFoundError(db.name)
        logger.debug(f"Database {db.name} at {db.path}")
        return db

    def with_dir(self, db_dir: Union[str, Path]) -> 'Database':
        """Load the same database from another base directory."""
        return Database.load(self.name, config=self.config.with_dir(db_dir))

    def packages(self, policy: Optional[UnknownKeyPolicy] = None) -> PackageIterator:
        """Return a new iterator over the packages of this database."""
        return PackageIterator(self.path, policy or self.config.unknown_keys)

    def __iter__(self) -> Iterator[PackageResult]:
        return self.packages()

    def find(self, name: str) -> Package:
        """Find a package by exact name.

        Records that fail to build are skipped.

        Raises:
            PackageNotFoundError: If no package has this name
            DatabaseLoadError: If the archive cannot be opened
            DatabaseIterationError: If the archive walk fails
        """
        with self.packages() as it:
            for item in it:
                if isinstance(item, FATAL_ERRORS):
                    raise item
                if isinstance(item, Package) and item.name == name:
                    return item
        raise PackageNotFoundError(name)

    def list_packages(self) -> List[Package]:
        """Return every package that builds successfully."""
        with self.packages() as it:
            return list(it.packages())

    def __repr__(self) -> str:
        return f"Database({self.name!r}, path={str(self.path)!r})"
