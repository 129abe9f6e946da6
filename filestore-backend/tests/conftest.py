"""
Pytest Configuration and Shared Fixtures

Provides temporary storage directories, settings isolation and
log/metric resets shared by unit and integration tests.
"""

import io
import logging
import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Test environment setup
os.environ["FILESTORE_ENVIRONMENT"] = "test"

from config.settings import get_settings, reload_settings
from data.storage.local import storage_operations
from monitoring.logging import ContextFilter, clear_request_context


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that drive the CLI end to end"
    )
    config.addinivalue_line(
        "markers", "posix: Tests relying on POSIX permission semantics"
    )


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def test_settings():
    """Load test settings."""
    return reload_settings()


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset settings after each test."""
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_observability():
    """Clear operation counters and logging context between tests."""
    storage_operations.reset()
    yield
    clear_request_context()
    storage_operations.reset()


@pytest.fixture
def preserved_root_logger():
    """Give a test a root logger it may reconfigure, then put it back."""
    root_logger = logging.getLogger()
    level = root_logger.level
    try:
        yield root_logger
    finally:
        # Drop handlers installed by configure_logging (they carry ContextFilter)
        for handler in list(root_logger.handlers):
            if any(isinstance(f, ContextFilter) for f in handler.filters):
                root_logger.removeHandler(handler)
                handler.close()
        root_logger.setLevel(level)


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_storage_dir(temp_dir: Path) -> Path:
    """Create temporary storage directory."""
    storage_dir = temp_dir / "storage"
    storage_dir.mkdir(parents=True, exist_ok=True)
    return storage_dir


# =============================================================================
# Stream Fixtures
# =============================================================================

class TrackingStream(io.BytesIO):
    """BytesIO that remembers whether close() was called."""

    def __init__(self, data: bytes = b""):
        super().__init__(data)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class UploadLike:
    """Upload object that reports its size but cannot seek."""

    def __init__(self, data: bytes, size=None):
        self._buffer = io.BytesIO(data)
        self.size = len(data) if size is None else size
        self.closed = False

    def read(self, n: int = -1) -> bytes:
        return self._buffer.read(n)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def tracking_stream():
    """Factory for streams that record close() calls."""
    return TrackingStream


@pytest.fixture
def upload_like():
    """Factory for size-reporting, non-seekable upload objects."""
    return UploadLike
