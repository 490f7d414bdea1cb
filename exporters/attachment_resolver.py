"""Attachment handling: a note's attachment folder is either the note itself
or a set of files to mirror beside the export."""

import logging
import shutil
from enum import Enum
from pathlib import Path
from typing import Optional

from converters.filename_sanitizer import strip_extension, to_valid_attachment_name

ARCHIVE_EXTENSION = '.ziw'
ATTACHMENTS_SUFFIX = '_Attachments'


class AttachmentResolution(Enum):
    """What the resolver did with a document's attachments."""
    NONE = "none"
    DOCUMENT_IS_ATTACHMENT = "document_is_attachment"
    MIRRORED = "mirrored"


def attachments_dir_for(archive_path: Path) -> Path:
    """Attachment folder stored next to a note archive."""
    archive_path = Path(archive_path)
    return archive_path.parent / (strip_extension(archive_path.name, ARCHIVE_EXTENSION) + ATTACHMENTS_SUFFIX)


def attachment_path(archive_path: Path, file_name: str) -> Path:
    """On-disk location of an indexed attachment."""
    return attachments_dir_for(archive_path) / to_valid_attachment_name(file_name)


class AttachmentResolver:
    """Resolves and copies the attachments of one document."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('wiznote_exporter.exporters.attachment_resolver')
        self.stats = {
            'documents_as_attachments': 0,
            'attachment_dirs_mirrored': 0,
        }

    def resolve(self, archive_path: Path, title: str, output_title_path: Path) -> AttachmentResolution:
        """
        Handle the attachment folder of a document.

        A folder holding exactly one file named after the note means the note
        is only a wrapper around that file (e.g. an imported PDF): the file is
        copied to ``output_title_path`` and the note needs no conversion.
        Any other folder is mirrored to ``<output_title_path>_Attachments``.

        Args:
            archive_path: Path of the note archive
            title: Sanitized note title
            output_title_path: Output directory joined with the sanitized title

        Returns:
            The resolution; ``DOCUMENT_IS_ATTACHMENT`` means the pipeline is done
        """
        attachments_dir = attachments_dir_for(archive_path)
        if not attachments_dir.is_dir():
            return AttachmentResolution.NONE

        output_title_path = Path(output_title_path)
        files = [path for path in attachments_dir.iterdir() if path.is_file()]

        if len(files) == 1 and files[0].name in (title, title.replace('_', ' ')):
            output_title_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(files[0], output_title_path)
            self.stats['documents_as_attachments'] += 1
            self.logger.debug(f"{title} is its own attachment, copied {files[0]}")
            return AttachmentResolution.DOCUMENT_IS_ATTACHMENT

        target_dir = output_title_path.parent / (output_title_path.name + ATTACHMENTS_SUFFIX)
        shutil.copytree(attachments_dir, target_dir, dirs_exist_ok=True)
        self.stats['attachment_dirs_mirrored'] += 1
        self.logger.debug(f"Mirrored attachments {attachments_dir} -> {target_dir}")
        return AttachmentResolution.MIRRORED

    def get_stats(self):
        """Get attachment statistics."""
        return self.stats.copy()


__all__ = [
    'AttachmentResolution',
    'AttachmentResolver',
    'attachment_path',
    'attachments_dir_for',
    'ARCHIVE_EXTENSION',
    'ATTACHMENTS_SUFFIX',
]
