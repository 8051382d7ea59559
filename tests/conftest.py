"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import pytest

from krd.logging_config import configure_logging
from krd.services.lossy_reporter import RecordingConversionLogger

configure_logging()


@pytest.fixture
def recording_logger() -> RecordingConversionLogger:
    """Provide a fresh conversion logger that keeps every lossy notice."""

    return RecordingConversionLogger()
