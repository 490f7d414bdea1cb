"""Per-document choice of output format, with HTML fallback."""

import logging
from pathlib import Path
from typing import Iterable, Optional

from bs4 import BeautifulSoup

from config_loader import DEFAULT_SOURCE_CODE_EXTENSIONS
from models import ExportFormat, RenderedDocument
from .filename_sanitizer import resource_dir_name
from .html_passthrough import prepare_html_document, serialize_html
from .text_converter import TextConverter


def title_extension(title: str) -> str:
    """Lower-cased extension of a note title (``''`` when there is none)."""
    index = title.rfind('.')
    if index == -1 or index == len(title) - 1:
        return ''
    return title[index:].lower()


def _with_extra_suffix(path: Path, suffix: str) -> Path:
    return path.parent / (path.name + suffix)


class FormatSelector:
    """
    Decide how a note is exported and produce its final content.

    Titles ending in ``.md``, ``.txt`` or a known source-code extension are
    exported as that kind of text file. Any other note is first tried as plain
    text (Markdown when it has images) and falls back to HTML when its markup
    is too rich to flatten.
    """

    def __init__(
        self,
        source_code_extensions: Optional[Iterable[str]] = None,
        converter: Optional[TextConverter] = None,
        logger: Optional[logging.Logger] = None
    ):
        extensions = DEFAULT_SOURCE_CODE_EXTENSIONS if source_code_extensions is None else source_code_extensions
        self.source_code_extensions = frozenset(ext.lower() for ext in extensions)
        self.logger = logger or logging.getLogger('wiznote_exporter.converters.formatselector')
        self.converter = converter or TextConverter(self.logger)

    def render(self, document: BeautifulSoup, title: str, output_title_path: Path) -> RenderedDocument:
        """
        Render a parsed note.

        Args:
            document: Parsed ``index.html`` of the note
            title: Sanitized note title
            output_title_path: Output directory joined with the sanitized title

        Returns:
            RenderedDocument with the final format, path and content

        Raises:
            UnsupportedStructureError: If a note whose format was chosen by its
                extension contains markup outside the text policy
        """
        output_title_path = Path(output_title_path)
        extension = title_extension(title)

        if extension == '.md':
            return self._render_forced(document, ExportFormat.MARKDOWN, output_title_path)

        if extension == '.txt':
            return self._render_forced(document, ExportFormat.TEXT, output_title_path)

        if extension in self.source_code_extensions:
            return self._render_forced(document, ExportFormat.SOURCE_CODE, output_title_path)

        return self._render_inferred(document, title, output_title_path)

    def _render_forced(self, document: BeautifulSoup, export_format: ExportFormat,
                       output_path: Path) -> RenderedDocument:
        # Text with images is written as Markdown
        markdown_path = output_path.with_suffix('.md') if export_format is ExportFormat.TEXT else None
        result = self.converter.try_convert(document, True, export_format, output_path, link_path=markdown_path)
        if not result.ok:
            raise result.error

        if markdown_path is not None and result.has_image:
            self.logger.debug(f"{output_path.name} references images, exporting as markdown")
            export_format = ExportFormat.MARKDOWN
            output_path = markdown_path

        return RenderedDocument(export_format=export_format, output_path=output_path, text=result.text)

    def _render_inferred(self, document: BeautifulSoup, title: str,
                         output_title_path: Path) -> RenderedDocument:
        text_path = _with_extra_suffix(output_title_path, '.txt')
        markdown_path = _with_extra_suffix(output_title_path, '.md')
        result = self.converter.try_convert(document, False, ExportFormat.TEXT, text_path, link_path=markdown_path)

        if result.ok:
            if result.has_image:
                return RenderedDocument(
                    export_format=ExportFormat.MARKDOWN,
                    output_path=markdown_path,
                    text=result.text
                )
            return RenderedDocument(export_format=ExportFormat.TEXT, output_path=text_path, text=result.text)

        self.logger.debug(f"Falling back to HTML for {title}: {result.error}")
        html_path = _with_extra_suffix(output_title_path, '.html')
        html_document = prepare_html_document(
            document, title, resource_dir_name(html_path, ExportFormat.HTML)
        )
        return RenderedDocument(
            export_format=ExportFormat.HTML,
            output_path=html_path,
            html=serialize_html(html_document)
        )


__all__ = ['FormatSelector', 'title_extension']
