"""Tests for note attachment handling."""

import unittest
import tempfile
from pathlib import Path

from exporters.attachment_resolver import (
    AttachmentResolution,
    AttachmentResolver,
    attachment_path,
    attachments_dir_for,
)


class TestAttachmentPaths(unittest.TestCase):

    def test_attachments_dir_next_to_archive(self):
        self.assertEqual(
            attachments_dir_for(Path('/acct/Notes/abc.ziw')),
            Path('/acct/Notes/abc_Attachments')
        )

    def test_attachment_path_sanitizes_name(self):
        self.assertEqual(
            attachment_path(Path('/acct/abc.ziw'), "q1, q2's.pdf"),
            Path('/acct/abc_Attachments/q1- q2-s.pdf')
        )


class TestAttachmentResolver(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.archive = self.root / 'account' / 'Notes' / 'abc.ziw'
        self.attachments = self.root / 'account' / 'Notes' / 'abc_Attachments'
        self.out = self.root / 'out' / 'Notes'
        self.resolver = AttachmentResolver()

    def tearDown(self):
        self._tmp.cleanup()

    def add_attachment(self, name, data=b'data'):
        self.attachments.mkdir(parents=True, exist_ok=True)
        (self.attachments / name).write_bytes(data)

    def test_no_attachment_folder(self):
        resolution = self.resolver.resolve(self.archive, 'Doc', self.out / 'Doc')

        self.assertIs(resolution, AttachmentResolution.NONE)
        self.assertFalse(self.out.exists())

    def test_single_matching_attachment_is_the_document(self):
        self.add_attachment('Photo.jpg', b'jpeg')

        resolution = self.resolver.resolve(self.archive, 'Photo.jpg', self.out / 'Photo.jpg')

        self.assertIs(resolution, AttachmentResolution.DOCUMENT_IS_ATTACHMENT)
        self.assertEqual((self.out / 'Photo.jpg').read_bytes(), b'jpeg')
        self.assertFalse((self.out / 'Photo.jpg_Attachments').exists())

    def test_underscores_match_spaces(self):
        self.add_attachment('Annual report.pdf')

        resolution = self.resolver.resolve(self.archive, 'Annual_report.pdf', self.out / 'Annual_report.pdf')

        self.assertIs(resolution, AttachmentResolution.DOCUMENT_IS_ATTACHMENT)
        self.assertTrue((self.out / 'Annual_report.pdf').exists())

    def test_single_unrelated_attachment_is_mirrored(self):
        self.add_attachment('budget.xlsx')

        resolution = self.resolver.resolve(self.archive, 'Plan', self.out / 'Plan')

        self.assertIs(resolution, AttachmentResolution.MIRRORED)
        self.assertTrue((self.out / 'Plan_Attachments' / 'budget.xlsx').exists())

    def test_several_attachments_mirrored(self):
        self.add_attachment('Photo.jpg')
        self.add_attachment('other.txt', b'other')

        resolution = self.resolver.resolve(self.archive, 'Photo.jpg', self.out / 'Photo.jpg')

        self.assertIs(resolution, AttachmentResolution.MIRRORED)
        mirrored = self.out / 'Photo.jpg_Attachments'
        self.assertEqual(sorted(p.name for p in mirrored.iterdir()), ['Photo.jpg', 'other.txt'])
        self.assertFalse((self.out / 'Photo.jpg').exists())

    def test_mirroring_twice_is_allowed(self):
        self.add_attachment('a.txt')
        self.add_attachment('b.txt')

        self.resolver.resolve(self.archive, 'Doc', self.out / 'Doc')
        self.resolver.resolve(self.archive, 'Doc', self.out / 'Doc')

        self.assertEqual(self.resolver.get_stats()['attachment_dirs_mirrored'], 2)


if __name__ == '__main__':
    unittest.main()
