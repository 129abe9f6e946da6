"""
Local File Storage - Status-returning file operations

@.architecture
Incoming: scripts/filestore_cli.py, Upload handlers (external) --- {target directory, filename, bytes content or binary stream, overwrite flags, extension option}
Processing: save_bytes(), save_stream(), delete_file(), extract_extension(), strip_extension(), _resolve(), _is_confined(), _remove_entry() --- {6 jobs: input_validation, path_resolution, directory_policy, file_policy, filesystem_io, status_mapping}
Outgoing: Local filesystem (Path.mkdir/write_bytes/unlink/rmdir), monitoring/metrics.py --- {StorageStatus values, filestore_operations_total counter}

Every save/delete call runs a single linear sequence:
validate -> resolve -> act -> classify

Nothing is raised past these functions. Filesystem failures (OSError)
become StorageStatus.IO_ERROR, anything else StorageStatus.UNKNOWN_ERROR,
and both are logged with traceback before being returned.

Paths are made absolute and normalized but never checked for traversal
unless the caller passes ``base_dir``.
"""

import functools
import os
import shutil
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Tuple, Union

from monitoring.logging import get_logger, operation_context
from monitoring.metrics import counter

from .status import StorageStatus

logger = get_logger(__name__)

# Metrics
storage_operations = counter(
    'filestore_operations_total',
    'Total storage operations',
    ['operation', 'status']
)

PathLike = Union[str, "os.PathLike[str]"]


def _recorded(operation: str) -> Callable:
    """Run the wrapped operation inside a logging context and count its status."""
    def decorator(func: Callable[..., StorageStatus]) -> Callable[..., StorageStatus]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> StorageStatus:
            with operation_context(operation):
                status = func(*args, **kwargs)
            storage_operations.inc(operation=operation, status=status.value)
            return status
        return wrapper
    return decorator


# =============================================================================
# PATH HELPERS
# =============================================================================

def _is_blank(value: Optional[PathLike]) -> bool:
    return value is None or not os.fspath(value).strip()


def _resolve(target_directory: PathLike, file_name: PathLike) -> Tuple[Path, Path]:
    """
    Resolve the directory and file path to absolute, normalized form.

    Symlinks are not followed. An absolute ``file_name`` replaces the
    directory, as with ``os.path.join``.
    """
    directory_path = Path(os.path.abspath(target_directory))
    file_path = Path(os.path.abspath(os.path.join(directory_path, file_name)))
    return directory_path, file_path


def _is_confined(base_dir: PathLike, *paths: Path) -> bool:
    """
    Check that every path lies inside ``base_dir``.

    Both sides are resolved with symlinks followed, so a link inside the
    base that points elsewhere does not count as inside.
    """
    base = Path(base_dir).resolve()
    for path in paths:
        try:
            path.resolve().relative_to(base)
        except ValueError:
            return False
    return True


def _remove_entry(path: Path) -> bool:
    """
    Remove a file, symlink or empty directory.

    Returns:
        True if something was removed, False if nothing existed at ``path``

    Raises:
        OSError: If the entry exists but cannot be removed
    """
    try:
        if path.is_dir() and not path.is_symlink():
            path.rmdir()
        else:
            path.unlink()
    except FileNotFoundError:
        return False
    return True


def _stream_size(stream: BinaryIO) -> Optional[int]:
    """
    Size reported by a stream, without reading from it.

    Uses a ``size`` attribute when present (upload objects), otherwise the
    remaining length of a seekable stream. Returns None when unknown.
    """
    size = getattr(stream, "size", None)
    if isinstance(size, int):
        return size

    seekable = getattr(stream, "seekable", None)
    if callable(seekable) and seekable():
        position = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(position)
        return end - position

    return None


def _copy_stream(stream: BinaryIO, file_path: Path) -> None:
    with open(file_path, "wb") as target:
        shutil.copyfileobj(stream, target)


def _release(stream: Optional[BinaryIO]) -> None:
    if stream is None:
        return
    try:
        stream.close()
    except Exception as e:
        logger.exception(f"Failed to close source stream: {e}")


# =============================================================================
# SAVE OPERATIONS
# =============================================================================

def _save(
    target_directory: PathLike,
    directory_overwrite: bool,
    file_name: PathLike,
    file_overwrite: bool,
    is_empty: Callable[[], bool],
    write: Callable[[Path], None],
    base_dir: Optional[PathLike] = None,
) -> StorageStatus:
    """Shared validate/resolve/policy/write sequence for both save variants."""
    if _is_blank(target_directory):
        return StorageStatus.INVALID_PATH
    if _is_blank(file_name):
        return StorageStatus.INVALID_FILENAME

    file_path: Optional[Path] = None
    try:
        if is_empty():
            return StorageStatus.EMPTY_FILE

        directory_path, file_path = _resolve(target_directory, file_name)

        if base_dir is not None and not _is_confined(base_dir, directory_path, file_path):
            logger.warning(
                f"Rejected path outside base directory: {file_path}",
                base_dir=os.fspath(base_dir)
            )
            return StorageStatus.SECURITY_ISSUE

        # Directory option
        if not directory_path.exists():
            if not directory_overwrite:
                return StorageStatus.PATH_DOES_NOT_EXIST
            directory_path.mkdir()
            logger.info(f"Created directory: {directory_path}")

        # File option
        if not file_overwrite and file_path.exists():
            return StorageStatus.FILE_ALREADY_EXISTS

        write(file_path)
        logger.debug(f"Saved file: {file_path}")
        return StorageStatus.SUCCESS

    except OSError as e:
        logger.exception(f"I/O error while saving {file_name}: {e}", path=str(file_path))
        return StorageStatus.IO_ERROR
    except Exception as e:
        logger.exception(f"Unexpected error while saving {file_name}: {e}", path=str(file_path))
        return StorageStatus.UNKNOWN_ERROR


@_recorded("save_bytes")
def save_bytes(
    target_directory: PathLike,
    directory_overwrite: bool,
    file_name: PathLike,
    content: bytes,
    file_overwrite: bool,
    *,
    base_dir: Optional[PathLike] = None
) -> StorageStatus:
    """
    Save in-memory bytes to ``target_directory / file_name``.

    Args:
        target_directory: Directory the file is saved into
        directory_overwrite: Create the directory (one level) if it is absent
        file_name: File name including extension
        content: Bytes to write
        file_overwrite: Replace the file if it already exists
        base_dir: Optional directory the resolved paths must stay inside

    Returns:
        StorageStatus
    """
    return _save(
        target_directory,
        directory_overwrite,
        file_name,
        file_overwrite,
        is_empty=lambda: not content,
        write=lambda file_path: file_path.write_bytes(content),
        base_dir=base_dir,
    )


@_recorded("save_stream")
def save_stream(
    target_directory: PathLike,
    directory_overwrite: bool,
    file_name: PathLike,
    source_stream: Optional[BinaryIO],
    file_overwrite: bool,
    *,
    base_dir: Optional[PathLike] = None
) -> StorageStatus:
    """
    Copy a readable binary stream to ``target_directory / file_name``.

    Same policy as save_bytes. Emptiness is judged from the size the
    stream reports, the stream is never read ahead. A stream that cannot
    report a size is treated as non-empty.

    The stream is closed before returning, whatever the outcome.
    """
    try:
        return _save(
            target_directory,
            directory_overwrite,
            file_name,
            file_overwrite,
            is_empty=lambda: source_stream is None or _stream_size(source_stream) == 0,
            write=lambda file_path: _copy_stream(source_stream, file_path),
            base_dir=base_dir,
        )
    finally:
        _release(source_stream)


# =============================================================================
# DELETE OPERATION
# =============================================================================

@_recorded("delete_file")
def delete_file(
    target_directory: PathLike,
    file_name: PathLike,
    extension_option: bool,
    *,
    base_dir: Optional[PathLike] = None
) -> StorageStatus:
    """
    Delete files from ``target_directory``.

    - extension_option True: delete only the entry named exactly
      ``file_name``. FILE_DOES_NOT_EXIST if there is none.
    - extension_option False: delete every entry whose name starts with
      the stem of ``file_name``. This is a prefix match, so ``report``
      also removes ``report_v2.txt``. Always SUCCESS, even with no match.

    Directories are only removed when empty.
    """
    if _is_blank(target_directory):
        return StorageStatus.INVALID_PATH
    if _is_blank(file_name):
        return StorageStatus.INVALID_FILENAME

    file_path: Optional[Path] = None
    try:
        directory_path, file_path = _resolve(target_directory, file_name)

        if base_dir is not None and not _is_confined(base_dir, directory_path, file_path):
            logger.warning(
                f"Rejected path outside base directory: {file_path}",
                base_dir=os.fspath(base_dir)
            )
            return StorageStatus.SECURITY_ISSUE

        if extension_option:
            if not _remove_entry(file_path):
                return StorageStatus.FILE_DOES_NOT_EXIST
            logger.info(f"Deleted file: {file_path}")
            return StorageStatus.SUCCESS

        stem = strip_extension(os.fspath(file_name))
        removed = 0
        for entry in list(directory_path.iterdir()):
            if entry.name.startswith(stem) and _remove_entry(entry):
                removed += 1

        logger.info(
            f"Deleted {removed} file(s) matching '{stem}*' in {directory_path}",
            removed=removed
        )
        return StorageStatus.SUCCESS

    except OSError as e:
        logger.exception(f"I/O error while deleting {file_name}: {e}", path=str(file_path))
        return StorageStatus.IO_ERROR
    except Exception as e:
        logger.exception(f"Unexpected error while deleting {file_name}: {e}", path=str(file_path))
        return StorageStatus.UNKNOWN_ERROR


# =============================================================================
# FILENAME HELPERS
# =============================================================================

def extract_extension(file_name: str) -> str:
    """
    Lower-cased text after the last period, or "" when there is none.

    Surrounding whitespace is stripped first. A leading-dot name such as
    ".gitignore" reports "gitignore".
    """
    trimmed = file_name.strip()
    period_index = trimmed.rfind('.')
    if period_index < 0:
        return ""
    return trimmed[period_index + 1:].lower()


def strip_extension(file_name: str) -> str:
    """
    ``file_name`` without the text from its last period onwards.

    Names with no period, or whose only period is the first character
    (".gitignore"), are returned unchanged. Unlike extract_extension,
    a leading dot is not treated as an extension here.
    """
    period_index = file_name.rfind('.')
    if period_index <= 0:
        return file_name
    return file_name[:period_index]
