"""Per-document export pipeline and batch driver for a WizNote account."""

import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from tqdm import tqdm

from archive.archive_reader import ArchiveReader
from converters.filename_sanitizer import to_valid_file_name
from converters.format_selector import FormatSelector
from exceptions import AttachmentMismatchError, ExportError
from index.index_reader import IndexReader
from logger import ProgressTracker
from models import (
    AttachmentDescriptor,
    DocumentDescriptor,
    DocumentExportResult,
    ExportSummary,
    WriteOutcome,
)
from .attachment_resolver import AttachmentResolution, AttachmentResolver, attachment_path
from .output_writer import OutputWriter
from .resource_extractor import ResourceExtractor

_STATUS_BY_OUTCOME = {
    WriteOutcome.WRITTEN: 'exported',
    WriteOutcome.UNCHANGED: 'unchanged',
    WriteOutcome.SKIPPED_MODIFIED: 'skipped_modified',
}


class NoteExporter:
    """
    Exports the notes of one account to a folder tree.

    For each note:
    1. Resolves its attachment folder (a single matching attachment *is* the note)
    2. Opens the archive and renders the note as text, Markdown, source or HTML
    3. Extracts embedded resources next to the output file
    4. Writes the output without overwriting files edited since the last export

    One note failing never stops the batch.
    """

    def __init__(
        self,
        account_dir: Path,
        output_dir: Path,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the exporter.

        Args:
            account_dir: WizNote account directory (holds index.db)
            output_dir: Root of the exported tree
            config: Configuration dictionary with export settings
            logger: Logger instance
        """
        self.account_dir = Path(account_dir)
        self.output_dir = Path(output_dir)
        self.config = config or {}
        self.logger = logger or logging.getLogger('wiznote_exporter.exporters.note_exporter')

        export_config = self.config.get('export', {})
        self.show_progress = export_config.get('progress_bars', True)

        self.format_selector = FormatSelector(
            source_code_extensions=export_config.get('source_code_extensions'),
            logger=self.logger
        )
        self.attachment_resolver = AttachmentResolver(self.logger)
        self.resource_extractor = ResourceExtractor(self.logger)
        self.output_writer = OutputWriter(self.logger)

    def output_title_path(self, document: DocumentDescriptor) -> Path:
        """Output location of a note, before any format extension is added."""
        relative_dir = os.path.relpath(document.archive_path.parent, self.account_dir)
        return (self.output_dir / relative_dir / to_valid_file_name(document.title)).resolve()

    def export_document(self, document: DocumentDescriptor) -> DocumentExportResult:
        """
        Run the full pipeline for one note.

        Raises:
            ExportError: For archive, structure or layout problems
            ValueError: If the note's modification time cannot be parsed
            OSError: On filesystem failures
        """
        modified_time = document.modified_time
        title = to_valid_file_name(document.title)
        output_title_path = self.output_title_path(document)
        output_title_path.parent.mkdir(parents=True, exist_ok=True)

        resolution = self.attachment_resolver.resolve(document.archive_path, title, output_title_path)
        if resolution is AttachmentResolution.DOCUMENT_IS_ATTACHMENT:
            return DocumentExportResult(
                document_id=document.id,
                title=document.title,
                status='attachment',
                output_path=output_title_path
            )

        with ArchiveReader(document.archive_path, self.logger) as archive:
            rendered = self.format_selector.render(archive.document(), title, output_title_path)
            resources = self.resource_extractor.extract(archive, rendered.output_path, rendered.export_format)

        outcome = self.output_writer.write(rendered.output_path, rendered.content, modified_time)

        self.logger.debug(
            f"Exported '{document.title}' as {rendered.export_format.value} -> {rendered.output_path} "
            f"({outcome.value}, {resources} resource(s))"
        )

        return DocumentExportResult(
            document_id=document.id,
            title=document.title,
            status=_STATUS_BY_OUTCOME[outcome],
            export_format=rendered.export_format,
            output_path=rendered.output_path,
            resources_extracted=resources
        )

    def export_all(self, index: IndexReader) -> ExportSummary:
        """
        Export every downloaded note of the index, then validate attachments.

        Args:
            index: Open IndexReader for the account

        Returns:
            ExportSummary with per-document results and timing
        """
        start_time = time.time()
        summary = ExportSummary()

        documents = list(index.documents())
        archive_paths = {document.id: document.archive_path for document in documents}

        self.logger.info(f"Starting export of {len(documents)} document(s) to {self.output_dir}")
        self.output_dir.mkdir(parents=True, exist_ok=True)

        with ProgressTracker(total_items=len(documents), item_type='documents') as tracker:
            documents_iter = documents
            if self._should_show_progress():
                documents_iter = tqdm(documents, desc="Exporting notes", unit="note", leave=False)

            for document in documents_iter:
                if not document.downloaded:
                    self.logger.warning(f"Need download: {document.title}")
                    summary.not_downloaded += 1
                    continue

                result = self._export_isolated(document)
                summary.results.append(result)
                summary.processed += 1
                tracker.increment(success=not result.failed)

        summary.attachment_mismatches = self.validate_attachments(index.attachments(), archive_paths)
        summary.elapsed_seconds = time.time() - start_time

        self.logger.info(f"{summary.processed} files processed in {summary.elapsed_seconds:.2f} seconds.")
        self._log_component_stats()
        return summary

    def _log_component_stats(self) -> None:
        stats = self.get_stats()
        self.logger.info(
            f"Files written: {stats['writes']['written']}, "
            f"unchanged: {stats['writes']['unchanged']}, "
            f"skipped (modified): {stats['writes']['skipped_modified']}"
        )
        self.logger.info(
            f"Resources extracted: {stats['resources']['files_extracted']}, "
            f"attachment folders mirrored: {stats['attachments']['attachment_dirs_mirrored']}, "
            f"attachments exported as documents: {stats['attachments']['documents_as_attachments']}"
        )

    def _export_isolated(self, document: DocumentDescriptor) -> DocumentExportResult:
        try:
            return self.export_document(document)
        except ExportError as e:
            self.logger.error(f"Failed to export {document.archive_path} ('{document.title}'): {e}")
            error = str(e)
        except Exception as e:
            self.logger.error(
                f"Failed to export {document.archive_path} ('{document.title}'): {e}",
                exc_info=True
            )
            error = str(e)

        return DocumentExportResult(
            document_id=document.id,
            title=document.title,
            status='failed',
            error=error
        )

    def validate_attachments(
        self,
        attachments: Iterable[AttachmentDescriptor],
        archive_paths: Dict[str, Path]
    ) -> List[AttachmentMismatchError]:
        """
        Check that every indexed attachment has been downloaded.

        Args:
            attachments: Attachment records from the index
            archive_paths: Mapping of document id to archive path

        Returns:
            Mismatches found; they are logged, never raised
        """
        mismatches = []

        for attachment in attachments:
            archive_path = archive_paths.get(attachment.document_id)
            if archive_path is None:
                self.logger.error(f'Cannot find Document for attachment "{attachment.file_name}"')
                continue

            if not attachment_path(archive_path, attachment.file_name).exists():
                mismatch = AttachmentMismatchError(archive_path, attachment.file_name)
                self.logger.error(str(mismatch))
                mismatches.append(mismatch)

        if mismatches:
            self.logger.warning(f"{len(mismatches)} attachment(s) missing on disk")

        return mismatches

    def get_stats(self) -> Dict[str, Any]:
        """Get component statistics."""
        return {
            'attachments': self.attachment_resolver.get_stats(),
            'resources': self.resource_extractor.get_stats(),
            'writes': self.output_writer.get_stats(),
        }

    def _should_show_progress(self) -> bool:
        """Check if progress bars should be displayed."""
        if not self.show_progress:
            return False
        return sys.stdout.isatty()


def export_account(account_dir: Path, output_dir: Path, config: Optional[Dict[str, Any]] = None,
                   logger: Optional[logging.Logger] = None) -> ExportSummary:
    """
    Export a whole account.

    Raises:
        IndexUnavailableError: If the account index cannot be opened or read
    """
    exporter = NoteExporter(account_dir, output_dir, config=config, logger=logger)
    with IndexReader(account_dir, logger=logger) as index:
        return exporter.export_all(index)


__all__ = ['NoteExporter', 'export_account']
