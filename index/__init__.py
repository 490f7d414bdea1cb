"""Access to the WizNote account index.

Package Structure:
- index_reader: SQLAlchemy-based reader for the WIZ_DOCUMENT and
  WIZ_DOCUMENT_ATTACHMENT tables of index.db
"""

from .index_reader import INDEX_FILE_NAME, IndexReader, archive_path_for

__all__ = ['INDEX_FILE_NAME', 'IndexReader', 'archive_path_for']
