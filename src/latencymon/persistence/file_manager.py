"""
Default filesystem persistence manager.

Durations are appended to one ``<category>.eps`` file per work category in a
data directory (the system temporary directory unless configured). Each file
is capped in size; once a file is over the cap, further durations for that
category are dropped until the process restarts.

Parameters accepted by ``init``:
- ``data.directory``: directory holding the data files (created if missing)
- ``max.file.bytes``: size cap per file, in bytes (default 4 MiB)
"""

import logging
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

from ..models.duration import DurationRecord
from ..validation import (
    LatencyMonitorError,
    ValidationError,
    handle_file_error,
    validate_positive_integer,
)
from .base import DurationPersistenceManager
from .codec import LINE_DELIMITER, parse_record
from .file_handle import DEFAULT_MAX_FILE_BYTES, DurationFileHandle, data_file_name

logger = logging.getLogger(__name__)

DATA_DIRECTORY_PARAM = "data.directory"
MAX_FILE_BYTES_PARAM = "max.file.bytes"


class FilePersistenceManager(DurationPersistenceManager):
    """
    Appends durations to size-bounded per-category files.

    Handles are created lazily under a lock; once published, writes through
    a handle happen only on the processor thread.
    """

    def __init__(self):
        self.parameters: Dict[str, str] = {}
        self.max_file_bytes = DEFAULT_MAX_FILE_BYTES
        self.data_directory: Optional[Path] = None
        self._handles: Dict[str, DurationFileHandle] = {}
        self._handles_lock = threading.Lock()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(self, parameters: Optional[Dict[str, str]] = None) -> None:
        if self._initialized:
            raise LatencyMonitorError("Persistence manager is already initialised")

        self.parameters = dict(parameters or {})

        raw_max = self.parameters.get(MAX_FILE_BYTES_PARAM)
        if raw_max is not None:
            try:
                self.max_file_bytes = validate_positive_integer(
                    raw_max, min_value=0, field_name=MAX_FILE_BYTES_PARAM
                )
            except ValidationError as e:
                logger.warning(f"Ignoring persistence parameter: {e}")

        directory = self.parameters.get(DATA_DIRECTORY_PARAM) or tempfile.gettempdir()
        self.data_directory = Path(directory)
        try:
            self.data_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            handle_file_error(
                error=e,
                context=f"creating data directory {self.data_directory}",
                reraise=False,
                logger=logger,
            )

        self._initialized = True
        logger.debug(
            f"File persistence initialised in {self.data_directory} "
            f"(max {self.max_file_bytes} bytes per category)"
        )

    def save(self, record: DurationRecord) -> None:
        self._assert_initialized()
        try:
            self._get_handle(record.category).save(record)
        except OSError as e:
            handle_file_error(
                error=e,
                context=f"persisting duration {record.identifier}",
                severity="warning",
                reraise=False,
                logger=logger,
            )

    def load_history(self, category: str) -> List[DurationRecord]:
        self._assert_initialized()
        path = self.data_file(category)
        if not path.exists():
            logger.debug(f"No history file for '{category}' at {path}")
            return []

        records: List[DurationRecord] = []
        with open(path, "r", encoding="utf-8", newline=LINE_DELIMITER) as stream:
            for line_number, line in enumerate(stream, start=1):
                if not line.strip():
                    continue
                record = parse_record(line, source=str(path), line_number=line_number)
                if record is not None:
                    records.append(record)

        logger.debug(f"Loaded {len(records)} historical durations for '{category}'")
        return records

    def data_file(self, category: str) -> Path:
        """Path of the data file for a category."""
        self._assert_initialized()
        return self.data_directory / data_file_name(category)

    def is_full(self, category: str) -> bool:
        handle = self._handles.get(category)
        return handle is not None and handle.full

    def close(self) -> None:
        with self._handles_lock:
            for handle in self._handles.values():
                handle.close()
            self._handles.clear()

    def _get_handle(self, category: str) -> DurationFileHandle:
        handle = self._handles.get(category)
        if handle is None:
            with self._handles_lock:
                handle = self._handles.get(category)
                if handle is None:
                    handle = DurationFileHandle(self.data_directory, category, self.max_file_bytes)
                    self._handles[category] = handle
        return handle

    def _assert_initialized(self) -> None:
        if not self._initialized:
            raise LatencyMonitorError("Persistence manager not initialised")
