"""Scoped reader for WizNote note archives."""

import logging
import shutil
import zipfile
from pathlib import Path
from typing import IO, Iterator, Optional, Union

from bs4 import BeautifulSoup

from exceptions import ArchiveError

PRIMARY_ENTRY = 'index.html'
MOBILE_ENTRY = 'wiz_mobile.html'
RESOURCE_PREFIX = 'index_files/'


class ArchiveEntry:
    """A single auxiliary member of an open archive."""

    def __init__(self, reader: 'ArchiveReader', info: zipfile.ZipInfo):
        self._reader = reader
        self._info = info
        self.path = info.filename.replace('\\', '/')

    @property
    def is_dir(self) -> bool:
        return self._info.is_dir()

    @property
    def name(self) -> str:
        """Final path component of the entry."""
        return self.path.rstrip('/').rsplit('/', 1)[-1]

    def open(self) -> IO[bytes]:
        """Open a binary data stream for the entry."""
        return self._reader._zip_file().open(self._info)

    def extract_to(self, target: Path) -> Path:
        """Write the entry's content to ``target``, replacing any existing file."""
        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        with self.open() as source, open(target, 'wb') as destination:
            shutil.copyfileobj(source, destination)
        return target

    def __repr__(self) -> str:
        return f"ArchiveEntry({self.path!r})"


class ArchiveReader:
    """
    Read-only view over one note archive.

    The handle owns the open zip file and the parsed primary document. Both
    become invalid once the handle is closed, so use it as a context manager:

        with ArchiveReader(path) as archive:
            soup = archive.document()
            for entry in archive.entries():
                ...
    """

    def __init__(self, archive_path: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.archive_path = Path(archive_path)
        self.logger = logger or logging.getLogger('wiznote_exporter.archive')
        self._zip: Optional[zipfile.ZipFile] = None
        self._document: Optional[BeautifulSoup] = None

    def __enter__(self) -> 'ArchiveReader':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def open(self) -> None:
        """Open the underlying zip container."""
        try:
            self._zip = zipfile.ZipFile(self.archive_path, 'r')
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveError(f"Cannot open archive {self.archive_path}: {e}") from e
        self.logger.debug(f"Opened archive {self.archive_path}")

    def close(self) -> None:
        """Release the container and everything derived from it."""
        if self._document is not None:
            self._document.decompose()
            self._document = None
        if self._zip is not None:
            self._zip.close()
            self._zip = None
            self.logger.debug(f"Closed archive {self.archive_path}")

    @property
    def closed(self) -> bool:
        return self._zip is None

    def _zip_file(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise ArchiveError(f"Archive {self.archive_path} is not open")
        return self._zip

    def document(self) -> BeautifulSoup:
        """
        Parse the primary HTML entry.

        Returns:
            BeautifulSoup tree, cached for the lifetime of the handle

        Raises:
            ArchiveError: If the primary entry is missing or unreadable
        """
        if self._document is not None:
            return self._document

        zip_file = self._zip_file()
        try:
            data = zip_file.read(PRIMARY_ENTRY)
        except KeyError:
            raise ArchiveError(f"{PRIMARY_ENTRY} not found in {self.archive_path}")
        except (zipfile.BadZipFile, OSError, RuntimeError) as e:
            raise ArchiveError(f"Cannot read {PRIMARY_ENTRY} from {self.archive_path}: {e}") from e

        # Encoding is sniffed from the BOM / meta charset by BeautifulSoup
        self._document = BeautifulSoup(data, 'lxml')
        return self._document

    def entries(self) -> Iterator[ArchiveEntry]:
        """Yield every archive member other than the primary entry."""
        for info in self._zip_file().infolist():
            entry = ArchiveEntry(self, info)
            if entry.path == PRIMARY_ENTRY:
                continue
            yield entry


__all__ = ['ArchiveEntry', 'ArchiveReader', 'PRIMARY_ENTRY', 'MOBILE_ENTRY', 'RESOURCE_PREFIX']
