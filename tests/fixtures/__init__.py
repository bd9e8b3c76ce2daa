"""
Test fixtures package for nfsstats tests.

This package provides a capturing logger and sample mountstats data
for testing the parser, snapshot store, rate engine and collector.
"""

from tests.fixtures.mock_logger import MockLogger
from tests.fixtures.sample_data import (
    SAMPLE_MOUNTSTATS,
    SAMPLE_MOUNTSTATS_NO_NFS,
    SAMPLE_CAPTURE_TIME,
    SAMPLE_PREVIOUS_TIME,
    SAMPLE_PREVIOUS_COUNTERS,
    make_mount_block,
    make_mountstats,
    counters_for,
    snapshot_pair,
)

__all__ = [
    'MockLogger',
    'SAMPLE_MOUNTSTATS',
    'SAMPLE_MOUNTSTATS_NO_NFS',
    'SAMPLE_CAPTURE_TIME',
    'SAMPLE_PREVIOUS_TIME',
    'SAMPLE_PREVIOUS_COUNTERS',
    'make_mount_block',
    'make_mountstats',
    'counters_for',
    'snapshot_pair',
]
