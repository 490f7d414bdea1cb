"""Error taxonomy for the WizNote export pipeline."""

from pathlib import Path
from typing import Optional, Union


class ExportError(Exception):
    """Base exception for export-related errors."""
    pass


class IndexUnavailableError(ExportError):
    """The account index database cannot be opened or read."""
    pass


class ArchiveError(ExportError):
    """A note archive cannot be opened or lacks its primary content entry."""
    pass


class UnsupportedStructureError(ExportError):
    """A tag is not permitted under the current conversion policy."""

    def __init__(self, tag: str, output_path: Union[str, Path, None] = None, reason: Optional[str] = None):
        self.tag = tag
        self.output_path = output_path
        message = f'Unexpected tag "{tag}"'
        if reason:
            message += f' ({reason})'
        if output_path is not None:
            message += f' in "{output_path}"'
        super().__init__(message)


class UnexpectedArchiveEntryError(ExportError):
    """An archive entry lies outside the known resource layout."""

    def __init__(self, entry: str, archive_path: Union[str, Path]):
        self.entry = entry
        self.archive_path = archive_path
        super().__init__(f'Unexpected file "{entry}" in {archive_path}')


class AttachmentMismatchError(ExportError):
    """An indexed attachment has no matching file on disk."""

    def __init__(self, document: Union[str, Path], file_name: str):
        self.document = document
        self.file_name = file_name
        super().__init__(f'Cannot find attachment "{file_name}" of document "{document}"')


__all__ = [
    'ExportError',
    'IndexUnavailableError',
    'ArchiveError',
    'UnsupportedStructureError',
    'UnexpectedArchiveEntryError',
    'AttachmentMismatchError',
]
