"""Idempotent, timestamp-preserving writes of exported documents."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from models import WriteOutcome


def _timestamp_ns(moment: datetime) -> int:
    # Microsecond precision keeps the value exactly representable on disk
    return int(round(moment.timestamp() * 1_000_000)) * 1000


class OutputWriter:
    """
    Writes exported documents so repeated exports never clobber manual edits.

    A file is (re)written when it is missing or not newer than the note's
    modification time, and its mtime is then set to the note's modification
    time. A destination newer than the note has been edited by hand and is
    left alone. Byte-identical content with an equal timestamp is not
    rewritten.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('wiznote_exporter.exporters.output_writer')
        self.stats = {
            'written': 0,
            'unchanged': 0,
            'skipped_modified': 0,
        }

    def write(self, path: Path, content: str, modified_time: datetime) -> WriteOutcome:
        """
        Commit ``content`` to ``path`` as UTF-8 without a byte-order mark.

        Args:
            path: Destination file
            content: Final text (line endings are written as given)
            modified_time: Modification time of the source note

        Returns:
            WriteOutcome describing what happened
        """
        path = Path(path)
        data = content.encode('utf-8')
        source_ns = _timestamp_ns(modified_time)

        if path.exists():
            destination_ns = path.stat().st_mtime_ns
            if source_ns < destination_ns:
                self.logger.warning(f"{path} has been modified, skip it.")
                self.stats['skipped_modified'] += 1
                return WriteOutcome.SKIPPED_MODIFIED

            if source_ns == destination_ns and self._has_content(path, data):
                self.logger.debug(f"{path} is unchanged, skipping write")
                self.stats['unchanged'] += 1
                return WriteOutcome.UNCHANGED

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        os.utime(path, ns=(path.stat().st_atime_ns, source_ns))

        self.stats['written'] += 1
        self.logger.debug(f"Wrote {len(data)} bytes to {path}")
        return WriteOutcome.WRITTEN

    def _has_content(self, path: Path, data: bytes) -> bool:
        try:
            return path.read_bytes() == data
        except OSError as e:
            self.logger.debug(f"Could not read existing file {path}: {e}, proceeding with write")
            return False

    def get_stats(self):
        """Get write statistics."""
        return self.stats.copy()


__all__ = ['OutputWriter']
