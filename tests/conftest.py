"""Shared fixtures building real note archives and account indexes."""

import logging
import zipfile
from pathlib import Path

import pytest
from sqlalchemy import create_engine, insert

from index.index_reader import INDEX_FILE_NAME, metadata, wiz_document, wiz_document_attachment
from logger import LOGGER_NAME

MODIFIED = '2021-03-04 05:06:07'


def document_row(guid, title, name, location='/My Notes/', modified=MODIFIED, downloaded=1):
    return {
        'DOCUMENT_GUID': guid,
        'DOCUMENT_TITLE': title,
        'DOCUMENT_LOCATION': location,
        'DOCUMENT_NAME': name,
        'DT_DATA_MODIFIED': modified,
        'WIZ_DOWNLOADED': downloaded,
    }


def attachment_row(guid, name):
    return {'DOCUMENT_GUID': guid, 'ATTACHMENT_NAME': name}


@pytest.fixture
def ziw_factory():
    """Build a .ziw archive holding index.html and optional extra entries."""
    def build(path, html='<html><body></body></html>', entries=None):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, 'w') as zf:
            if html is not None:
                zf.writestr('index.html', html)
            for name, data in (entries or {}).items():
                zf.writestr(name, data)
        return path
    return build


@pytest.fixture
def index_factory():
    """Create index.db in an account directory with the given rows."""
    def build(account_dir, documents=(), attachments=()):
        account_dir = Path(account_dir)
        account_dir.mkdir(parents=True, exist_ok=True)
        engine = create_engine(f"sqlite:///{(account_dir / INDEX_FILE_NAME).as_posix()}")
        metadata.create_all(engine)
        with engine.begin() as connection:
            if documents:
                connection.execute(insert(wiz_document), list(documents))
            if attachments:
                connection.execute(insert(wiz_document_attachment), list(attachments))
        engine.dispose()
        return account_dir
    return build


@pytest.fixture
def reset_logging():
    """Drop handlers installed by setup_logging so they do not outlive the test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
