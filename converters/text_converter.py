"""Tag-by-tag conversion of a note's HTML body into plain text or Markdown."""

import logging
import posixpath
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from archive.archive_reader import RESOURCE_PREFIX
from exceptions import UnsupportedStructureError
from models import LINE_ENDING, ConversionResult, ExportFormat
from .filename_sanitizer import resource_dir_name

CHECKBOX_ATTRIBUTE = 'data-wiz-check'

# Inline wrappers whose children are rendered in place
PASSTHROUGH_TAGS = frozenset({'span', 'a', 'font'})

# Rich tags that are only flattened when the text format was chosen explicitly
TEXT_COERCIBLE_TAGS = frozenset({
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'blockquote', 'label', 'b', 'strong', 'u',
    'header', 'figure', 'small', 'code',
})

BLOCK_TAGS = frozenset({'div', 'p'})

IGNORED_TAGS = frozenset({'style', 'meta', 'title', 'wiz_tmp_caret'})

_LINE_BREAK_PATTERN = re.compile(r'\r\n|\r|\n')
_LINE_BREAK_CHARS = re.compile(r'[\r\n]')


def de_entitize(text: str, keep_line_endings: bool = False) -> str:
    """
    Normalize decoded node text for output.

    Entities are already resolved by the parser; non-breaking spaces become
    plain spaces. Line endings are dropped unless ``keep_line_endings`` is
    set, in which case they are normalized to ``LINE_ENDING``.
    """
    result = text.replace('\xa0', ' ')
    if keep_line_endings:
        return _LINE_BREAK_PATTERN.sub(LINE_ENDING, result)
    return _LINE_BREAK_CHARS.sub('', result)


class OutputBuffer:
    """Character accumulator with the trimming rules used by the walk."""

    def __init__(self):
        self._text = ''

    def __len__(self) -> int:
        return len(self._text)

    def append(self, text: str) -> None:
        self._text += text

    def clear(self) -> None:
        self._text = ''

    def ends_with(self, suffix: str) -> bool:
        return self._text.endswith(suffix)

    def trim_end(self, chars: str) -> None:
        self._text = self._text.rstrip(chars)

    def trim_and_add_line_ending(self) -> None:
        """Drop trailing spaces, then end the line unless nothing was written yet."""
        self.trim_end(' ')
        if self._text:
            self._text += LINE_ENDING

    def terminate_line(self) -> None:
        """Make sure the buffer ends on a line boundary."""
        if self._text and not self._text.endswith('\n'):
            self.trim_and_add_line_ending()

    def ensure_end_of_file(self) -> None:
        """Leave exactly one trailing line ending (none for empty output)."""
        self.trim_end(' \r\n')
        if self._text:
            self._text += LINE_ENDING

    def getvalue(self) -> str:
        return self._text


@dataclass
class ConversionContext:
    """State of one conversion pass, threaded through the recursive walk."""

    force_text: bool
    export_format: ExportFormat
    output_path: Path
    image_dir: str
    buffer: OutputBuffer = field(default_factory=OutputBuffer)
    has_image: bool = False
    stopped: bool = False


class TextConverter:
    """
    Render a parsed note body as text or Markdown.

    Every accepted tag is listed explicitly; anything else makes the content
    unrepresentable under the current policy and is reported through the
    returned ``ConversionResult`` instead of being dropped.
    """

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger('wiznote_exporter.converters.textconverter')

    def try_convert(
        self,
        document: Union[BeautifulSoup, Tag],
        force_text: bool,
        export_format: ExportFormat,
        output_path: Union[str, Path],
        link_path: Union[str, Path, None] = None
    ) -> ConversionResult:
        """
        Convert the body of ``document``.

        Args:
            document: Parsed note (or any tag to use as the content root)
            force_text: Accept rich block tags by flattening them to text
            export_format: Target format; Markdown enables the lite-note rule
            output_path: Path the text is meant for, used in error messages
            link_path: File the image links are relative to, when it differs
                from ``output_path`` (a text note with images is written as
                Markdown)

        Returns:
            ConversionResult with the text and image flag, or the rejection
        """
        output_path = Path(output_path)
        ctx = ConversionContext(
            force_text=force_text,
            export_format=export_format,
            output_path=output_path,
            image_dir=self.image_link_dir(Path(link_path or output_path), export_format),
        )

        root = document.body if isinstance(document, BeautifulSoup) else document
        if root is not None:
            error = self._process_content(root, ctx)
            if error is not None:
                self.logger.debug(f"Text conversion rejected: {error}")
                return ConversionResult.rejected(error)

        ctx.buffer.ensure_end_of_file()
        return ConversionResult(text=ctx.buffer.getvalue(), has_image=ctx.has_image)

    def convert_standalone_html(
        self,
        html_content: str,
        force_text: bool = True,
        export_format: ExportFormat = ExportFormat.TEXT,
        output_path: Union[str, Path] = 'note.txt'
    ) -> ConversionResult:
        """Parse and convert an HTML string (handy for previews and tests)."""
        return self.try_convert(BeautifulSoup(html_content, 'lxml'), force_text, export_format, output_path)

    @staticmethod
    def image_link_dir(output_path: Path, export_format: ExportFormat) -> str:
        """Resource directory used in image links for a text-like export."""
        # A text result that references images is always written as Markdown
        link_format = ExportFormat.MARKDOWN if export_format is ExportFormat.TEXT else export_format
        return resource_dir_name(output_path, link_format, escape_spaces=True)

    def _process_content(self, node: Tag, ctx: ConversionContext) -> Optional[UnsupportedStructureError]:
        for child in node.children:
            if ctx.stopped:
                return None

            # Comments, doctype, CDATA and processing instructions
            if isinstance(child, PreformattedString):
                continue

            if isinstance(child, NavigableString):
                ctx.buffer.append(de_entitize(str(child)))
                continue

            if not isinstance(child, Tag):
                continue

            name = child.name
            error = None

            if name == 'pre':
                text = de_entitize(child.get_text(), keep_line_endings=True)
                if ctx.export_format is ExportFormat.MARKDOWN:
                    # Lite markdown notes are a single <pre> holding the whole document
                    ctx.buffer.clear()
                    ctx.buffer.append(text)
                    ctx.stopped = True
                    return None
                ctx.buffer.append(text)

            elif name == 'br':
                ctx.buffer.trim_and_add_line_ending()

            elif name == 'img':
                error = self._process_image(child, ctx)

            elif name in PASSTHROUGH_TAGS:
                error = self._process_content(child, ctx)

            elif name in TEXT_COERCIBLE_TAGS:
                if not ctx.force_text:
                    return UnsupportedStructureError(name, ctx.output_path)
                error = self._process_content(child, ctx)

            elif name in BLOCK_TAGS:
                ctx.buffer.terminate_line()
                error = self._process_content(child, ctx)
                if ctx.stopped:
                    return error
                ctx.buffer.terminate_line()

            elif name in IGNORED_TAGS:
                continue

            else:
                return UnsupportedStructureError(name, ctx.output_path)

            if error is not None:
                return error

        return None

    def _process_image(self, node: Tag, ctx: ConversionContext) -> Optional[UnsupportedStructureError]:
        src = node.get('src') or ''

        if src.startswith(RESOURCE_PREFIX):
            relative_path = src[len(RESOURCE_PREFIX):]
            label = posixpath.splitext(posixpath.basename(relative_path))[0]
            ctx.buffer.append(f"![{label}]({ctx.image_dir}/{relative_path})")
        else:
            check_state = node.get(CHECKBOX_ATTRIBUTE)
            if check_state is not None:
                if check_state == 'checked':
                    ctx.buffer.append('- [x] ')
                elif check_state == 'unchecked':
                    ctx.buffer.append('- [ ] ')
                else:
                    self.logger.debug(f"Ignoring checkbox state '{check_state}' in {ctx.output_path}")
            elif src:
                label = posixpath.splitext(posixpath.basename(urlparse(src).path))[0]
                ctx.buffer.append(f"![{label}]({src})")
            else:
                return UnsupportedStructureError('img', ctx.output_path, reason='missing src')

        ctx.has_image = True
        return None


__all__ = [
    'CHECKBOX_ATTRIBUTE',
    'ConversionContext',
    'OutputBuffer',
    'TextConverter',
    'de_entitize',
]
