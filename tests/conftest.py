"""Root conftest - shared fixtures for the call-routing tests."""

import pytest

from callrouting.trace import TraceLogger, reset_trace_logger


@pytest.fixture
def trace():
    """A private trace logger so tests can inspect recorded events."""
    return TraceLogger(max_buffer_size=100, log_dir="")


@pytest.fixture(autouse=True)
def reset_global_trace():
    """Reset the global trace logger before and after each test."""
    reset_trace_logger()
    yield
    reset_trace_logger()
