"""End-to-end tests of the export pipeline over a real account layout."""

import os
import re
from pathlib import Path
from urllib.parse import unquote

import pytest

from conftest import MODIFIED, attachment_row, document_row
from exporters import NoteExporter, export_account
from index import IndexReader
from models import AttachmentDescriptor, DocumentDescriptor, ExportFormat

CONFIG = {'export': {'progress_bars': False}}


@pytest.fixture
def account(tmp_path, ziw_factory, index_factory):
    """An account with one note of each kind."""
    account_dir = tmp_path / 'acct'
    notes = account_dir / 'My Notes'

    ziw_factory(notes / 'hello.ziw', '<html><body><div>Hi there</div></body></html>')
    ziw_factory(notes / 'plan.ziw', '<html><head></head><body><label>Budget</label></body></html>')
    ziw_factory(notes / 'notes.ziw', '<html><body><pre>print(1)</pre></body></html>')
    ziw_factory(notes / 'broken.ziw', '<html><body><table><tr><td>x</td></tr></table></body></html>')
    ziw_factory(
        notes / 'pic.ziw',
        '<html><body><div><img src="index_files/pic.png"></div></body></html>',
        entries={'index_files/pic.png': b'png'}
    )
    # Not downloaded yet: the archive does not exist
    # Attachment-only note: no archive needed either
    (notes / 'photo_Attachments').mkdir(parents=True)
    (notes / 'photo_Attachments' / 'Photo.jpg').write_bytes(b'jpeg')

    return index_factory(
        account_dir,
        documents=[
            document_row('d1', 'Hello', 'hello.ziw'),
            document_row('d2', 'Plan', 'plan.ziw'),
            document_row('d3', 'Notes.md', 'notes.ziw'),
            document_row('d4', 'Later', 'later.ziw', downloaded=0),
            document_row('d5', 'Broken.txt', 'broken.ziw'),
            document_row('d6', 'Photo.jpg', 'photo.ziw'),
            document_row('d7', 'Pic', 'pic.ziw'),
        ],
        attachments=[
            attachment_row('d6', 'Photo.jpg'),
            attachment_row('d1', 'missing.pdf'),
            attachment_row('unknown', 'orphan.pdf'),
        ],
    )


class TestExportAccount:

    def test_batch_export(self, tmp_path, account):
        out = tmp_path / 'out'

        summary = export_account(account, out, config=CONFIG)
        notes = out / 'My Notes'

        assert (notes / 'Hello.txt').read_bytes() == b'Hi there\r\n'
        assert '<title>Plan</title>' in (notes / 'Plan.html').read_text(encoding='utf-8')
        assert not (notes / 'Plan.txt').exists()
        assert (notes / 'Notes.md').read_bytes() == b'print(1)\r\n'
        assert not (notes / 'Notes.assets').exists()
        assert (notes / 'Photo.jpg').read_bytes() == b'jpeg'
        assert (notes / 'Pic.md').read_text(encoding='utf-8') == '![pic](Pic.assets/pic.png)\r\n'
        assert (notes / 'Pic.assets' / 'pic.png').read_bytes() == b'png'
        assert not (notes / 'Later.txt').exists()
        assert not (notes / 'Broken.txt').exists()

        assert summary.processed == 6
        assert summary.not_downloaded == 1
        assert summary.count('exported') == 4
        assert summary.count('attachment') == 1
        assert summary.failed == 1
        assert summary.elapsed_seconds >= 0

    def test_output_carries_note_time(self, tmp_path, account):
        out = tmp_path / 'out'
        export_account(account, out, config=CONFIG)

        expected = DocumentDescriptor('d1', 'Hello', Path('x'), MODIFIED).modified_time.timestamp()
        assert os.path.getmtime(out / 'My Notes' / 'Hello.txt') == expected

    def test_failure_is_isolated(self, tmp_path, account):
        summary = export_account(account, tmp_path / 'out', config=CONFIG)

        failed = [result for result in summary.results if result.failed]
        assert [result.document_id for result in failed] == ['d5']
        assert 'table' in failed[0].error

    def test_attachment_validation(self, tmp_path, account):
        summary = export_account(account, tmp_path / 'out', config=CONFIG)

        assert [mismatch.file_name for mismatch in summary.attachment_mismatches] == ['missing.pdf']

    def test_rerun_is_idempotent(self, tmp_path, account):
        out = tmp_path / 'out'
        export_account(account, out, config=CONFIG)

        summary = export_account(account, out, config=CONFIG)

        assert summary.count('exported') == 0
        assert summary.count('unchanged') == 4
        assert (out / 'My Notes' / 'Hello.txt').read_bytes() == b'Hi there\r\n'

    def test_manual_edits_preserved(self, tmp_path, account):
        out = tmp_path / 'out'
        export_account(account, out, config=CONFIG)

        hello = out / 'My Notes' / 'Hello.txt'
        hello.write_text('my edits', encoding='utf-8')
        later = os.stat(hello).st_mtime_ns + 3600 * 1_000_000_000
        os.utime(hello, ns=(later, later))

        summary = export_account(account, out, config=CONFIG)

        assert hello.read_text(encoding='utf-8') == 'my edits'
        assert summary.count('skipped_modified') == 1

    def test_statistics(self, tmp_path, account):
        stats = export_account(account, tmp_path / 'out', config=CONFIG).get_statistics()

        assert stats['processed'] == 6
        assert stats['not_downloaded'] == 1
        assert stats['attachments_as_documents'] == 1
        assert stats['attachment_mismatches'] == 1


class TestNoteExporter:

    def test_export_document_formats(self, tmp_path, account):
        exporter = NoteExporter(account, tmp_path / 'out', config=CONFIG)

        with IndexReader(account) as index:
            documents = {document.id: document for document in index.documents()}

        assert exporter.export_document(documents['d2']).export_format is ExportFormat.HTML
        assert exporter.export_document(documents['d3']).export_format is ExportFormat.MARKDOWN

        result = exporter.export_document(documents['d7'])
        assert result.status == 'exported'
        assert result.resources_extracted == 1
        assert result.to_dict()['export_format'] == 'markdown'

    def test_unparseable_time_fails_document(self, tmp_path, account):
        exporter = NoteExporter(account, tmp_path / 'out', config=CONFIG)
        document = DocumentDescriptor(
            id='x', title='Hello', archive_path=account / 'My Notes' / 'hello.ziw', modified='not a date'
        )

        with pytest.raises(ValueError):
            exporter.export_document(document)

    def test_output_path_mirrors_account_folders(self, tmp_path):
        account = tmp_path / 'acct'
        exporter = NoteExporter(account, tmp_path / 'out')
        document = DocumentDescriptor(
            id='x', title='a/b: c?', archive_path=account / 'Work' / 'Q1' / 'n.ziw', modified=MODIFIED
        )

        assert exporter.output_title_path(document) == (tmp_path / 'out' / 'Work' / 'Q1' / 'a-b- c-').resolve()

    def test_validate_attachments_uses_sanitized_names(self, tmp_path):
        archive = tmp_path / 'acct' / 'n.ziw'
        (tmp_path / 'acct' / 'n_Attachments').mkdir(parents=True)
        (tmp_path / 'acct' / 'n_Attachments' / 'a-b.pdf').write_bytes(b'')
        exporter = NoteExporter(tmp_path / 'acct', tmp_path / 'out')

        mismatches = exporter.validate_attachments(
            [AttachmentDescriptor('n', 'a,b.pdf'), AttachmentDescriptor('n', 'c.pdf')],
            {'n': archive}
        )

        assert [(m.document, m.file_name) for m in mismatches] == [(archive, 'c.pdf')]

    def test_component_stats_after_batch(self, tmp_path, account):
        exporter = NoteExporter(account, tmp_path / 'out', config=CONFIG)

        with IndexReader(account) as index:
            exporter.export_all(index)

        stats = exporter.get_stats()
        assert stats['writes']['written'] == 4
        assert stats['resources']['files_extracted'] == 1
        assert stats['attachments']['documents_as_attachments'] == 1


class TestImageLinks:
    """Every image link written for a note points at an extracted resource."""

    @pytest.mark.parametrize('title,expected_name', [
        ('Pic', 'Pic.md'),
        ('README.TXT', 'README.md'),
        ('Todo.Txt', 'Todo.md'),
        ('My Notes.TXT', 'My Notes.md'),
        ('Notes.MD', 'Notes.MD'),
        ('main.PY', 'main.PY'),
    ])
    def test_links_resolve_for_mixed_case_extensions(self, tmp_path, ziw_factory, title, expected_name):
        account_dir = tmp_path / 'acct'
        archive = ziw_factory(
            account_dir / 'note.ziw',
            '<html><body><div><img src="index_files/pic.png"></div></body></html>',
            entries={'index_files/pic.png': b'png'}
        )
        exporter = NoteExporter(account_dir, tmp_path / 'out', config=CONFIG)

        result = exporter.export_document(DocumentDescriptor('n', title, archive, MODIFIED))

        assert result.output_path.name == expected_name
        links = re.findall(r'\]\(([^)]+)\)', result.output_path.read_text(encoding='utf-8'))
        assert len(links) == 1
        for link in links:
            assert (result.output_path.parent / unquote(link)).read_bytes() == b'png'
