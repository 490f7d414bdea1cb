"""Read note and attachment records from a WizNote account index (index.db)."""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Union

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from exceptions import IndexUnavailableError
from models import AttachmentDescriptor, DocumentDescriptor

INDEX_FILE_NAME = 'index.db'

metadata = MetaData()

wiz_document = Table(
    'WIZ_DOCUMENT',
    metadata,
    Column('DOCUMENT_GUID', String, primary_key=True),
    Column('DOCUMENT_TITLE', String),
    Column('DOCUMENT_LOCATION', String),
    Column('DOCUMENT_NAME', String),
    Column('DT_DATA_MODIFIED', String),
    Column('WIZ_DOWNLOADED', Integer),
)

wiz_document_attachment = Table(
    'WIZ_DOCUMENT_ATTACHMENT',
    metadata,
    Column('DOCUMENT_GUID', String),
    Column('ATTACHMENT_NAME', String),
)


def archive_path_for(account_dir: Path, location: str, file_name: str) -> Path:
    """Join the account directory with a stored location such as ``/My Notes/Sub/``."""
    parts = [part for part in (location or '').replace('\\', '/').split('/') if part]
    return Path(account_dir).joinpath(*parts, file_name)


class IndexReader:
    """
    Read-only access to the account index.

    Used as a context manager so the engine's connection pool is disposed:

        with IndexReader(account_dir) as index:
            for document in index.documents():
                ...
    """

    def __init__(self, account_dir: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.account_dir = Path(account_dir)
        self.index_path = self.account_dir / INDEX_FILE_NAME
        self.logger = logger or logging.getLogger('wiznote_exporter.index')
        self._engine: Optional[Engine] = None

    def __enter__(self) -> 'IndexReader':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def open(self) -> None:
        """Connect to the index database."""
        # SQLite would silently create a missing database
        if not self.index_path.is_file():
            raise IndexUnavailableError(f"Index database not found: {self.index_path}")

        try:
            self._engine = create_engine(f"sqlite:///{self.index_path.as_posix()}")
            with self._engine.connect():
                self.logger.info(f"Opened index database {self.index_path}")
        except SQLAlchemyError as e:
            self.close()
            raise IndexUnavailableError(f"Cannot open index database {self.index_path}: {e}") from e

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def _fetch_all(self, statement) -> List:
        if self._engine is None:
            raise IndexUnavailableError("Index database is not open")
        try:
            with self._engine.connect() as connection:
                return connection.execute(statement).fetchall()
        except SQLAlchemyError as e:
            raise IndexUnavailableError(f"Cannot read index database {self.index_path}: {e}") from e

    def documents(self) -> Iterator[DocumentDescriptor]:
        """Yield every note recorded in the index."""
        rows = self._fetch_all(select(wiz_document))
        self.logger.info(f"Found {len(rows)} document(s) in index")

        for row in rows:
            yield DocumentDescriptor(
                id=row.DOCUMENT_GUID,
                title=row.DOCUMENT_TITLE or '',
                archive_path=archive_path_for(self.account_dir, row.DOCUMENT_LOCATION, row.DOCUMENT_NAME or ''),
                modified=row.DT_DATA_MODIFIED or '',
                downloaded=bool(row.WIZ_DOWNLOADED),
            )

    def attachments(self) -> Iterator[AttachmentDescriptor]:
        """Yield every attachment recorded in the index."""
        rows = self._fetch_all(select(wiz_document_attachment))
        self.logger.debug(f"Found {len(rows)} attachment(s) in index")

        for row in rows:
            yield AttachmentDescriptor(document_id=row.DOCUMENT_GUID, file_name=row.ATTACHMENT_NAME or '')


__all__ = [
    'INDEX_FILE_NAME',
    'IndexReader',
    'archive_path_for',
    'metadata',
    'wiz_document',
    'wiz_document_attachment',
]
