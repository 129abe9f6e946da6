"""
Storage Status - Result codes for file storage operations

@.architecture
Incoming: data/storage/local.py, scripts/filestore_cli.py --- {status values returned by save/delete calls}
Processing: StorageStatus enum, is_success --- {1 job: result_classification}
Outgoing: Callers of data/storage/local.py --- {StorageStatus values}

Every save/delete operation returns exactly one of these values instead of
raising. IO_ERROR and UNKNOWN_ERROR are the only buckets that absorb
platform exceptions.
"""

from enum import Enum


class StorageStatus(str, Enum):
    """Closed set of outcomes for storage operations."""

    SUCCESS = "success"

    # Input errors (detected before touching the filesystem)
    INVALID_PATH = "invalid_path"
    INVALID_FILENAME = "invalid_filename"
    EMPTY_FILE = "empty_file"

    # Precondition errors
    PATH_DOES_NOT_EXIST = "path_does_not_exist"
    FILE_DOES_NOT_EXIST = "file_does_not_exist"
    FILE_ALREADY_EXISTS = "file_already_exists"

    # Only produced when a confinement base directory is supplied
    SECURITY_ISSUE = "security_issue"

    # System errors
    IO_ERROR = "io_error"
    UNKNOWN_ERROR = "unknown_error"

    # Reserved, no producer
    NO_EXTENSION = "no_extension"

    @property
    def is_success(self) -> bool:
        return self is StorageStatus.SUCCESS
