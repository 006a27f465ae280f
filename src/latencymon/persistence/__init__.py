"""
Persistence of completed durations.

Completed executions are appended to an on-disk log per work category and
replayed when statistics for a statistical requirement are first needed, so
that running averages survive process restarts. The default store writes one
size-bounded, line-oriented ``.eps`` file per category.
"""

from .base import DurationPersistenceManager
from .codec import parse_record, render_record, split_fields
from .file_handle import DATA_FILE_EXTENSION, DEFAULT_MAX_FILE_BYTES, DurationFileHandle, data_file_name
from .file_manager import DATA_DIRECTORY_PARAM, MAX_FILE_BYTES_PARAM, FilePersistenceManager
from .factory import create_persistence_manager, register_persistence_manager_type

__all__ = [
    "DurationPersistenceManager",
    "DurationFileHandle",
    "FilePersistenceManager",
    "create_persistence_manager",
    "register_persistence_manager_type",
    "parse_record",
    "render_record",
    "split_fields",
    "data_file_name",
    "DATA_FILE_EXTENSION",
    "DEFAULT_MAX_FILE_BYTES",
    "DATA_DIRECTORY_PARAM",
    "MAX_FILE_BYTES_PARAM",
]
