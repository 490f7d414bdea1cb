"""Converters package for turning WizNote HTML into text, Markdown or HTML files."""

import logging
from pathlib import Path

from bs4 import BeautifulSoup

from models import RenderedDocument
from .filename_sanitizer import (
    resource_dir_name,
    strip_extension,
    to_valid_attachment_name,
    to_valid_file_name,
)
from .format_selector import FormatSelector, title_extension
from .html_passthrough import prepare_html_document, serialize_html
from .text_converter import OutputBuffer, TextConverter, de_entitize


def render_document(document: BeautifulSoup, title: str, output_title_path: Path,
                    config=None, logger=None) -> RenderedDocument:
    """
    Convenience function to render a parsed note with the default policy.

    Args:
        document: Parsed ``index.html`` of the note
        title: Sanitized note title
        output_title_path: Output directory joined with the sanitized title
        config: Optional configuration dictionary (``export.source_code_extensions``)
        logger: Optional logger instance

    Returns:
        RenderedDocument with the chosen format, path and content

    Example:
        >>> from bs4 import BeautifulSoup
        >>> soup = BeautifulSoup('<html><body><p>Hello</p></body></html>', 'lxml')
        >>> render_document(soup, 'Greeting', Path('out/Greeting')).output_path
        PosixPath('out/Greeting.txt')
    """
    extensions = (config or {}).get('export', {}).get('source_code_extensions')
    selector = FormatSelector(
        source_code_extensions=extensions,
        logger=logger or logging.getLogger('wiznote_exporter.converters')
    )
    return selector.render(document, title, output_title_path)


__all__ = [
    'render_document',
    'FormatSelector',
    'TextConverter',
    'OutputBuffer',
    'de_entitize',
    'title_extension',
    'prepare_html_document',
    'serialize_html',
    'resource_dir_name',
    'strip_extension',
    'to_valid_file_name',
    'to_valid_attachment_name',
]
