"""
Streaming access to the tar archive of a sync database.

A sync database is a compressed tar with one directory per package:

    supertux-0.6.2-3/
    supertux-0.6.2-3/desc
    supertux-0.6.2-3/files     (only in .files databases)

The archive is walked forward-only in tarfile stream mode, so only one
decompression buffer is held at a time. An entry's content can be read
only until the reader moves to the next entry.
"""

import logging
import tarfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Iterator, Optional, Set, Union

from .compression import decompression_errors, open_stream
from .errors import DatabaseIterationError, DatabaseLoadError

logger = logging.getLogger(__name__)

DESC_FILENAME = 'desc'


class ArchiveEntry:
    """One file of the archive, valid until the reader advances."""

    def __init__(self, reader: 'ArchiveReader', member: tarfile.TarInfo):
        self._reader = reader
        self._member = member

    @property
    def path(self) -> str:
        return self._member.name

    def is_file(self) -> bool:
        return self._member.isfile()

    def read(self) -> bytes:
        """Read the whole content of the entry.

        Raises:
            DatabaseIterationError: If the archive fails while reading
        """
        return self._reader._read_member(self._member)

    def __repr__(self) -> str:
        return f"ArchiveEntry({self.path!r})"


class ArchiveReader:
    """Forward-only iterator over the entries of a compressed tar archive.

    Nothing is opened until the first entry is requested. A failure to
    open or walk the archive is raised once; afterwards the reader is
    closed and exhausted. The reader cannot be restarted: build a new one
    to walk the archive again.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._stream: Optional[BinaryIO] = None
        self._tar: Optional[tarfile.TarFile] = None
        self._started = False
        self._closed = False

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return self

    def __next__(self) -> ArchiveEntry:
        if self._closed:
            raise StopIteration
        if not self._started:
            self._started = True
            self._open()

        try:
            member = self._tar.next()
        except (tarfile.TarError,) + decompression_errors() as e:
            logger.debug(f"Archive walk failed in {self.path}: {e}")
            self.close()
            raise DatabaseIterationError(self.path) from e

        if member is None:
            logger.debug(f"End of archive {self.path}")
            self.close()
            raise StopIteration

        # tarfile keeps every header it has walked past; drop them
        self._tar.members.clear()
        return ArchiveEntry(self, member)

    def _open(self):
        try:
            self._stream = open_stream(self.path)
        except (ImportError,) + decompression_errors() as e:
            logger.debug(f"Cannot open {self.path}: {e}")
            self.close()
            raise DatabaseLoadError(self.path) from e

        try:
            self._tar = tarfile.open(fileobj=self._stream, mode='r|')
        except tarfile.TarError as e:
            logger.debug(f"Not a tar archive {self.path}: {e}")
            self.close()
            raise DatabaseIterationError(self.path) from e
        except decompression_errors() as e:
            logger.debug(f"Cannot decompress {self.path}: {e}")
            self.close()
            raise DatabaseLoadError(self.path) from e

    def _read_member(self, member: tarfile.TarInfo) -> bytes:
        if self._tar is None:
            raise DatabaseIterationError(self.path)
        try:
            content = self._tar.extractfile(member)
            if content is None:
                return b''
            with content:
                return content.read()
        except (tarfile.TarError,) + decompression_errors() as e:
            logger.debug(f"Reading {member.name} failed in {self.path}: {e}")
            self.close()
            raise DatabaseIterationError(self.path) from e

    def close(self):
        """Release the archive and its file handle."""
        self._closed = True
        tar, stream = self._tar, self._stream
        self._tar = None
        self._stream = None
        if tar is not None:
            tar.close()
        if stream is not None:
            stream.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def package_dir_of(path: str) -> Optional[str]:
    """Return the package directory of a desc entry path, or None.

    Accepts `<dir>/desc` with an optional leading `./`.
    """
    parts = [p for p in PurePosixPath(path).parts if p != '.']
    if len(parts) != 2 or parts[1] != DESC_FILENAME:
        return None
    return parts[0]


class EntryFilter:
    """Keeps only the desc entry of each package directory.

    Directories and every other per-package file (files, signatures,
    old-style depends) are consumed silently.
    """

    def __init__(self, entries: Iterator[ArchiveEntry]):
        self._entries = iter(entries)
        self._seen: Set[str] = set()
        self.current_package: Optional[str] = None

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return self

    def __next__(self) -> ArchiveEntry:
        for entry in self._entries:
            if not entry.is_file():
                continue
            package_dir = package_dir_of(entry.path)
            if package_dir is None:
                logger.debug(f"Skipping {entry.path}")
                continue
            if package_dir in self._seen:
                logger.warning(f"Duplicate desc entry for {package_dir}, skipping")
                continue
            self._seen.add(package_dir)
            self.current_package = package_dir
            return entry
        raise StopIteration
