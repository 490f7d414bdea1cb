"""Data models for the WizNote export pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from exceptions import UnsupportedStructureError

# Timestamp pattern used by the WizNote index (DT_DATA_MODIFIED)
MODIFIED_TIME_FORMAT = '%Y-%m-%d %H:%M:%S'

LINE_ENDING = '\r\n'


class ExportFormat(Enum):
    """Output representation chosen for a document."""
    MARKDOWN = "markdown"
    TEXT = "text"
    SOURCE_CODE = "source_code"
    HTML = "html"


class WriteOutcome(Enum):
    """Result of committing a document to disk."""
    WRITTEN = "written"
    UNCHANGED = "unchanged"
    SKIPPED_MODIFIED = "skipped_modified"


@dataclass(frozen=True)
class DocumentDescriptor:
    """A note as recorded in the account index."""

    id: str
    title: str
    archive_path: Path
    modified: str  # as stored in the index, e.g. "2021-03-04 05:06:07"
    downloaded: bool = True

    @property
    def modified_time(self) -> datetime:
        """Modification time as naive local time.

        Raises:
            ValueError: If the stored value does not match the index pattern
        """
        return datetime.strptime(self.modified.strip(), MODIFIED_TIME_FORMAT)


@dataclass(frozen=True)
class AttachmentDescriptor:
    """An attachment row from the account index."""

    document_id: str
    file_name: str


@dataclass
class ConversionResult:
    """Outcome of one text conversion attempt.

    Either carries the rendered text, or the structural problem that made the
    content unrepresentable under the requested policy.
    """

    text: str = ''
    has_image: bool = False
    error: Optional[UnsupportedStructureError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def rejected(cls, error: UnsupportedStructureError) -> 'ConversionResult':
        return cls(error=error)


@dataclass
class RenderedDocument:
    """Final content of a document together with where it goes."""

    export_format: ExportFormat
    output_path: Path
    text: Optional[str] = None
    html: Optional[str] = None

    @property
    def content(self) -> str:
        if self.export_format is ExportFormat.HTML:
            return self.html or ''
        return self.text or ''


@dataclass
class DocumentExportResult:
    """Per-document status used for the batch summary."""

    document_id: str
    title: str
    status: str  # "exported", "unchanged", "skipped_modified", "attachment", "failed"
    export_format: Optional[ExportFormat] = None
    output_path: Optional[Path] = None
    resources_extracted: int = 0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == 'failed'

    def to_dict(self) -> Dict[str, Any]:
        """Serialize result to dictionary."""
        return {
            'document_id': self.document_id,
            'title': self.title,
            'status': self.status,
            'export_format': self.export_format.value if self.export_format else None,
            'output_path': str(self.output_path) if self.output_path else None,
            'resources_extracted': self.resources_extracted,
            'error': self.error
        }


@dataclass
class ExportSummary:
    """Aggregated statistics for one export run."""

    processed: int = 0
    not_downloaded: int = 0
    elapsed_seconds: float = 0.0
    results: list = field(default_factory=list)
    attachment_mismatches: list = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for result in self.results if result.status == status)

    @property
    def failed(self) -> int:
        return self.count('failed')

    def get_statistics(self) -> Dict[str, Any]:
        """Get export statistics."""
        return {
            'processed': self.processed,
            'not_downloaded': self.not_downloaded,
            'exported': self.count('exported'),
            'unchanged': self.count('unchanged'),
            'skipped_modified': self.count('skipped_modified'),
            'attachments_as_documents': self.count('attachment'),
            'failed': self.failed,
            'attachment_mismatches': len(self.attachment_mismatches),
            'elapsed_seconds': self.elapsed_seconds
        }


__all__ = [
    'MODIFIED_TIME_FORMAT',
    'LINE_ENDING',
    'ExportFormat',
    'WriteOutcome',
    'DocumentDescriptor',
    'AttachmentDescriptor',
    'ConversionResult',
    'RenderedDocument',
    'DocumentExportResult',
    'ExportSummary',
]
