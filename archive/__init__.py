"""Read-only access to WizNote note archives (.ziw).

Package Structure:
- archive_reader: Scoped archive handle exposing the primary HTML document
  and the auxiliary entries (embedded resources)
"""

from .archive_reader import (
    ArchiveEntry,
    ArchiveReader,
    MOBILE_ENTRY,
    PRIMARY_ENTRY,
    RESOURCE_PREFIX,
)

__all__ = [
    'ArchiveEntry',
    'ArchiveReader',
    'MOBILE_ENTRY',
    'PRIMARY_ENTRY',
    'RESOURCE_PREFIX',
]
