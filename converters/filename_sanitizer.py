"""File naming rules shared by the converters and exporters."""

from pathlib import Path, PurePath
from typing import Union

from models import ExportFormat

REPLACEMENT_CHAR = '-'

# Windows set, applied on every platform so exported trees stay portable
INVALID_FILE_NAME_CHARS = '"<>|:*?\\/' + ''.join(chr(code) for code in range(32))

# The WizNote client folds these as well when storing attachments on disk
ATTACHMENT_FOLDED_CHARS = "',"

_FILE_NAME_TABLE = str.maketrans({char: REPLACEMENT_CHAR for char in INVALID_FILE_NAME_CHARS})
_ATTACHMENT_NAME_TABLE = str.maketrans(
    {char: REPLACEMENT_CHAR for char in INVALID_FILE_NAME_CHARS + ATTACHMENT_FOLDED_CHARS}
)

# Extensions removed from an output file name before deriving its resource directory
DOCUMENT_EXTENSIONS = ('.txt', '.md', '.html')


def to_valid_file_name(name: str) -> str:
    """Replace every character that is not allowed in a file name."""
    return name.translate(_FILE_NAME_TABLE)


def to_valid_attachment_name(name: str) -> str:
    """Sanitize an attachment name the way the client stored it on disk."""
    return name.translate(_ATTACHMENT_NAME_TABLE)


def strip_extension(name: str, *extensions: str) -> str:
    """Remove the final extension of ``name`` if it is one of ``extensions``."""
    suffix = PurePath(name).suffix
    if suffix and suffix in extensions:
        return name[:-len(suffix)]
    return name


def resource_dir_name(output_path: Union[str, Path], export_format: ExportFormat,
                      escape_spaces: bool = False) -> str:
    """
    Name of the sibling directory holding a document's embedded resources.

    ``Note.md`` -> ``Note.assets``; ``Note.txt`` / ``Note.html`` / ``main.py``
    -> ``Note_files`` / ``Note_files`` / ``main.py_files``.

    Args:
        output_path: Final output file path (only the file name is used)
        export_format: Format the document is written as
        escape_spaces: Percent-encode spaces for use inside a link target
    """
    base_name = strip_extension(Path(output_path).name, *DOCUMENT_EXTENSIONS)
    suffix = '.assets' if export_format is ExportFormat.MARKDOWN else '_files'
    dir_name = base_name + suffix
    if escape_spaces:
        dir_name = dir_name.replace(' ', '%20')
    return dir_name


__all__ = [
    'REPLACEMENT_CHAR',
    'INVALID_FILE_NAME_CHARS',
    'to_valid_file_name',
    'to_valid_attachment_name',
    'strip_extension',
    'resource_dir_name',
]
