"""Export package writing WizNote notes, resources and attachments to disk.

Package Structure:
- note_exporter: Per-document pipeline and batch driver
- attachment_resolver: Copies or mirrors a note's attachment folder
- resource_extractor: Extracts ``index_files/`` resources next to the output
- output_writer: Writes output files without clobbering manual edits
"""

from .attachment_resolver import AttachmentResolution, AttachmentResolver, attachment_path, attachments_dir_for
from .note_exporter import NoteExporter, export_account
from .output_writer import OutputWriter
from .resource_extractor import ResourceExtractor

__all__ = [
    'NoteExporter',
    'export_account',
    'AttachmentResolution',
    'AttachmentResolver',
    'attachment_path',
    'attachments_dir_for',
    'OutputWriter',
    'ResourceExtractor',
]
