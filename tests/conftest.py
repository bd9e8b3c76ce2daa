"""
Shared pytest fixtures for nfsstats tests.

These fixtures provide sample reports, loggers and an isolated work
directory so no test reads /proc or writes outside tmp_path.
"""

import json
from pathlib import Path

import pytest

from nfsstats.config import WORKDIR_ENV, PLUGIN_META_ENV
from tests.fixtures import (
    MockLogger,
    SAMPLE_MOUNTSTATS,
    SAMPLE_PREVIOUS_COUNTERS,
    SAMPLE_PREVIOUS_TIME,
)


# =============================================================================
# Environment Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_plugin_env(monkeypatch, tmp_path):
    """Point the plugin work directory at tmp_path and clear meta mode."""
    workdir = tmp_path / "workdir"
    workdir.mkdir()
    monkeypatch.setenv(WORKDIR_ENV, str(workdir))
    monkeypatch.delenv(PLUGIN_META_ENV, raising=False)
    return workdir


# =============================================================================
# Logger Fixtures
# =============================================================================

@pytest.fixture
def mock_logger():
    """
    Create a logger that captures messages per level.

    Usage:
        def test_something(mock_logger):
            some_function(logger=mock_logger)
            mock_logger.assert_logged('warning', 'expected message')
    """
    return MockLogger()


# =============================================================================
# Report Fixtures
# =============================================================================

@pytest.fixture
def mountstats_file(tmp_path) -> Path:
    """Write SAMPLE_MOUNTSTATS to a file and return its path."""
    path = tmp_path / "mountstats"
    path.write_text(SAMPLE_MOUNTSTATS)
    return path


@pytest.fixture
def legacy_snapshot_file(isolated_plugin_env) -> Path:
    """Flat snapshot with a _lastTime key, as written by older collectors."""
    path = isolated_plugin_env / "mackerel-plugin-nfs"
    data = dict(SAMPLE_PREVIOUS_COUNTERS)
    data["_lastTime"] = SAMPLE_PREVIOUS_TIME
    path.write_text(json.dumps(data))
    return path
