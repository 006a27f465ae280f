"""
Size-bounded append-only file for one work category.
"""

import logging
import os
from pathlib import Path
from typing import Optional, TextIO

from ..models.duration import DurationRecord
from .codec import LINE_DELIMITER, render_record

logger = logging.getLogger(__name__)

DATA_FILE_EXTENSION = ".eps"
DEFAULT_MAX_FILE_BYTES = 4 * 1024 * 1024


def data_file_name(category: str) -> str:
    """Name of the data file holding the history of a category."""
    return f"{category}{DATA_FILE_EXTENSION}"


class DurationFileHandle:
    """
    Append-only writer for ``<category>.eps``.

    The file is opened lazily on the first write. Before every write the
    current file length is probed; once it exceeds ``max_file_bytes`` the
    handle becomes full, the file is closed and every later write is a no-op.
    A single write may therefore take the file past the cap by at most one
    record.
    """

    def __init__(self, directory: Path, category: str, max_file_bytes: int = DEFAULT_MAX_FILE_BYTES):
        self.path = Path(directory) / data_file_name(category)
        self.category = category
        self.max_file_bytes = max_file_bytes
        self.full = False
        self._stream: Optional[TextIO] = None

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def save(self, record: DurationRecord) -> bool:
        """
        Append one record.

        Returns:
            True if the record was written, False if the handle is full

        Raises:
            OSError: If the file cannot be opened or written
        """
        if self.full:
            return False

        if self._stream is None:
            self._stream = open(self.path, "a", encoding="utf-8", newline=LINE_DELIMITER)

        if self._exceeded_allowed_size():
            logger.info(
                f"History file {self.path} exceeded {self.max_file_bytes} bytes; "
                f"no further durations will be saved for '{self.category}'"
            )
            self.full = True
            self.close()
            return False

        self._stream.write(render_record(record))
        self._stream.flush()
        return True

    def close(self) -> None:
        if self._stream is not None:
            try:
                self._stream.close()
            finally:
                self._stream = None

    def _exceeded_allowed_size(self) -> bool:
        return os.path.getsize(self.path) > self.max_file_bytes
