"""
Collection orchestrator.

One invocation reads the mountstats report, loads the snapshot saved by the
previous run, saves the current one for the next run and derives the metric
set from the pair. The snapshot is saved before rates are derived so that a
stale or unusable interval still leaves a fresh baseline behind.
"""

import logging
import os
import time
from typing import Callable, Dict, Optional

from nfsstats.config import DEFAULT_MOUNTSTATS_PATH, DEFAULT_PREFIX, default_tempfile_name, plugin_workdir
from nfsstats.errors import SnapshotLoadError
from nfsstats.interfaces.sink import MetricSink
from nfsstats.mountstats import parse_mountstats, read_mountstats
from nfsstats.outputter import graph_definitions, plugin_meta_requested
from nfsstats.rates import derive_metrics
from nfsstats.snapshot import SnapshotStore


class NFSCollector:
    """
    Runs the parse, load, save, derive pipeline once.

    Args:
        prefix: Metric key prefix; also names the default snapshot record.
        tempfile: Snapshot record file name, overriding the default.
        workdir: Directory holding the snapshot record. Defaults to
            $MACKEREL_PLUGIN_WORKDIR or the system temp directory.
        source: Path of the mountstats report.
        logger: Optional logger.
        clock: Returns the current Unix time.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX, tempfile: Optional[str] = None,
                 workdir: Optional[str] = None, source: str = DEFAULT_MOUNTSTATS_PATH,
                 logger=None, clock: Callable[[], float] = time.time):
        self.prefix = prefix or DEFAULT_PREFIX
        self.tempfile = tempfile
        self.workdir = workdir
        self.source = source
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self.last_capture_time: Optional[float] = None

    @property
    def tempfile_path(self) -> str:
        workdir = self.workdir or plugin_workdir()
        return os.path.join(workdir, self.tempfile or default_tempfile_name(self.prefix))

    @property
    def store(self) -> SnapshotStore:
        return SnapshotStore(self.tempfile_path, clock=self.clock, logger=self.logger)

    def read_source(self) -> str:
        return read_mountstats(self.source)

    def fetch_metrics(self) -> Optional[Dict[str, float]]:
        """
        Collect one metric set.

        Returns:
            Metric values keyed ``<category>.<device>.<operation>``, or None
            when there is no usable interval (first run, unreadable prior
            snapshot, or a prior snapshot that is too old).

        Raises:
            SourceUnavailableError: If the report cannot be read.
            NoMountsFoundError: If the report has no NFS mounts.
            SnapshotSaveError: If the current snapshot cannot be persisted.
        """
        # Capture times are whole Unix seconds, so the staleness bound is
        # compared in seconds
        now = int(self.clock())
        self.last_capture_time = now

        devices, counters = parse_mountstats(self.read_source(), logger=self.logger)
        self.logger.info(f"Parsed {len(counters)} counters from {len(devices)} NFS mount(s)")

        store = self.store
        try:
            last_counters, last_time = store.load()
            last_time = int(last_time)
        except SnapshotLoadError as e:
            self.logger.warning(f"fetchLastValues (ignore): {e.error.message}")
            self.logger.debug(str(e))
            last_counters, last_time = {}, now

        store.save(counters, now)

        return derive_metrics(devices, counters, last_counters, now, last_time, logger=self.logger)

    def run(self, sink: MetricSink, meta: Optional[bool] = None) -> Optional[Dict[str, float]]:
        """
        Collect and publish, or publish graph definitions when the agent
        asks for plugin metadata.
        """
        if meta is None:
            meta = plugin_meta_requested()
        if meta:
            sink.emit_graph_definitions(graph_definitions(self.prefix))
            return None

        metrics = self.fetch_metrics()
        if metrics:
            sink.emit_metrics(metrics, self.last_capture_time)
        return metrics
