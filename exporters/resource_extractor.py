"""Extraction of embedded note resources into the sibling resource directory."""

import logging
import posixpath
from pathlib import Path
from typing import Optional

from archive.archive_reader import MOBILE_ENTRY, PRIMARY_ENTRY, RESOURCE_PREFIX, ArchiveReader
from converters.filename_sanitizer import resource_dir_name
from exceptions import UnexpectedArchiveEntryError
from models import ExportFormat

# Files the WizNote editor keeps next to the note content
EDITOR_FILE_PREFIX = 'wizEditor'

STYLESHEET_EXTENSION = '.css'


class ResourceExtractor:
    """
    Copies the files under ``index_files/`` of a note archive next to the
    exported document.

    The target directory is ``<name>.assets`` for Markdown and ``<name>_files``
    for every other format, so image links written by the converters resolve
    without rewriting. Stylesheets are dropped for Markdown and text output.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('wiznote_exporter.exporters.resource_extractor')
        self.stats = {
            'files_extracted': 0,
            'files_skipped': 0,
        }

    def extract(self, archive: ArchiveReader, output_path: Path, export_format: ExportFormat) -> int:
        """
        Extract embedded resources for one document.

        Args:
            archive: Open archive of the note
            output_path: Final output file of the document
            export_format: Final export format of the document

        Returns:
            Number of extracted files

        Raises:
            UnexpectedArchiveEntryError: If the archive holds files outside the
                known layout
        """
        output_path = Path(output_path)
        resource_dir = output_path.parent / resource_dir_name(output_path, export_format)
        extracted = 0

        for entry in archive.entries():
            if entry.path in (PRIMARY_ENTRY, MOBILE_ENTRY):
                continue

            if not entry.path.startswith(RESOURCE_PREFIX):
                raise UnexpectedArchiveEntryError(entry.path, archive.archive_path)

            if entry.is_dir:
                continue

            if entry.name.startswith(EDITOR_FILE_PREFIX):
                self.stats['files_skipped'] += 1
                continue

            extension = posixpath.splitext(entry.name)[1]
            if extension == STYLESHEET_EXTENSION and export_format in (ExportFormat.MARKDOWN, ExportFormat.TEXT):
                self.stats['files_skipped'] += 1
                continue

            target = self._target_path(resource_dir, entry.path[len(RESOURCE_PREFIX):])
            if target is None:
                raise UnexpectedArchiveEntryError(entry.path, archive.archive_path)

            entry.extract_to(target)
            extracted += 1
            self.logger.debug(f"Extracted {entry.path} -> {target}")

        self.stats['files_extracted'] += extracted

        if export_format is ExportFormat.TEXT and extracted:
            self.logger.info(f"Txt file {archive.archive_path} has index_files.")

        return extracted

    @staticmethod
    def _target_path(resource_dir: Path, relative_path: str) -> Optional[Path]:
        """Resolve an entry below the resource directory; None if it would escape it."""
        parts = [part for part in relative_path.split('/') if part not in ('', '.')]
        if not parts or '..' in parts:
            return None
        return resource_dir.joinpath(*parts)

    def get_stats(self):
        """Get resource extraction statistics."""
        return self.stats.copy()


__all__ = ['ResourceExtractor', 'EDITOR_FILE_PREFIX']
