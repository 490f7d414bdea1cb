"""Tests for extracting embedded note resources."""

import pytest

from archive import ArchiveReader
from exceptions import UnexpectedArchiveEntryError
from exporters.resource_extractor import ResourceExtractor
from models import ExportFormat

ENTRIES = {
    'wiz_mobile.html': '<html></html>',
    'index_files/': b'',
    'index_files/pic.png': b'png',
    'index_files/sub/deep.gif': b'gif',
    'index_files/style.css': 'p {}',
    'index_files/wizEditorForMarkdown.css': 'x',
}


class TestResourceExtractor:

    def test_markdown_resources(self, tmp_path, ziw_factory):
        path = ziw_factory(tmp_path / 'note.ziw', entries=ENTRIES)
        out = tmp_path / 'out'
        extractor = ResourceExtractor()

        with ArchiveReader(path) as archive:
            count = extractor.extract(archive, out / 'Note.md', ExportFormat.MARKDOWN)

        assert count == 2
        assert (out / 'Note.assets' / 'pic.png').read_bytes() == b'png'
        assert (out / 'Note.assets' / 'sub' / 'deep.gif').read_bytes() == b'gif'
        assert not (out / 'Note.assets' / 'style.css').exists()
        assert not (out / 'Note.assets' / 'wizEditorForMarkdown.css').exists()
        assert not (out / 'Note.assets' / 'wiz_mobile.html').exists()
        assert extractor.get_stats() == {'files_extracted': 2, 'files_skipped': 2}

    def test_html_keeps_stylesheets(self, tmp_path, ziw_factory):
        path = ziw_factory(tmp_path / 'note.ziw', entries=ENTRIES)
        out = tmp_path / 'out'

        with ArchiveReader(path) as archive:
            count = ResourceExtractor().extract(archive, out / 'Plan.html', ExportFormat.HTML)

        assert count == 3
        assert (out / 'Plan_files' / 'style.css').exists()
        assert not (out / 'Plan_files' / 'wizEditorForMarkdown.css').exists()

    def test_no_resources_creates_no_directory(self, tmp_path, ziw_factory):
        path = ziw_factory(tmp_path / 'note.ziw')
        out = tmp_path / 'out'

        with ArchiveReader(path) as archive:
            count = ResourceExtractor().extract(archive, out / 'Notes.md', ExportFormat.MARKDOWN)

        assert count == 0
        assert not (out / 'Notes.assets').exists()

    def test_existing_resources_overwritten(self, tmp_path, ziw_factory):
        path = ziw_factory(tmp_path / 'note.ziw', entries={'index_files/pic.png': b'new'})
        target = tmp_path / 'out' / 'Note.assets' / 'pic.png'
        target.parent.mkdir(parents=True)
        target.write_bytes(b'old')

        with ArchiveReader(path) as archive:
            ResourceExtractor().extract(archive, tmp_path / 'out' / 'Note.md', ExportFormat.MARKDOWN)

        assert target.read_bytes() == b'new'

    def test_unexpected_entry(self, tmp_path, ziw_factory):
        path = ziw_factory(tmp_path / 'note.ziw', entries={'notes/readme.txt': 'x'})

        with ArchiveReader(path) as archive:
            with pytest.raises(UnexpectedArchiveEntryError) as exc_info:
                ResourceExtractor().extract(archive, tmp_path / 'Note.txt', ExportFormat.TEXT)

        assert exc_info.value.entry == 'notes/readme.txt'

    def test_entry_escaping_resource_directory(self, tmp_path, ziw_factory):
        path = ziw_factory(tmp_path / 'note.ziw', entries={'index_files/../../evil.txt': 'x'})

        with ArchiveReader(path) as archive:
            with pytest.raises(UnexpectedArchiveEntryError):
                ResourceExtractor().extract(archive, tmp_path / 'out' / 'Note.md', ExportFormat.MARKDOWN)

        assert not (tmp_path / 'evil.txt').exists()
