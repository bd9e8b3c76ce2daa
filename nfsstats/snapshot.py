"""
Counter snapshots persisted between collector invocations.

A snapshot is written as JSON:

    {"version": 1, "capture_time": 1536731220.0, "counters": {"ops.mnt.read": 43026.0, ...}}

Records written by older collectors are a flat counter mapping with the
capture time stored under the reserved ``_lastTime`` key; those are still
accepted on load.
"""

import json
import logging
import math
import os
import tempfile
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Tuple

from nfsstats.config import SNAPSHOT_SCHEMA_VERSION, LEGACY_TIME_KEY
from nfsstats.errors import SnapshotLoadError, SnapshotSaveError

module_logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class Snapshot:
    """Counter values captured at one point in time."""
    capture_time: float
    counters: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": SNAPSHOT_SCHEMA_VERSION,
            "capture_time": float(self.capture_time),
            "counters": {k: float(v) for k, v in self.counters.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'Snapshot':
        """
        Build a snapshot from a decoded record.

        Raises:
            ValueError: If the record does not have a known structure.
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        if "counters" in data:
            version = data.get("version", SNAPSHOT_SCHEMA_VERSION)
            if not _is_number(version) or version > SNAPSHOT_SCHEMA_VERSION:
                raise ValueError(f"unsupported snapshot version: {version!r}")
            raw_counters = data["counters"]
            capture_time = data.get("capture_time", 0)
            if not isinstance(raw_counters, dict):
                raise ValueError("'counters' is not a JSON object")
        else:
            # Flat record with the capture time mixed into the counters
            raw_counters = dict(data)
            capture_time = raw_counters.pop(LEGACY_TIME_KEY, 0)

        if not _is_number(capture_time) or not math.isfinite(capture_time):
            raise ValueError(f"invalid capture time: {capture_time!r}")

        counters = {}
        for key, value in raw_counters.items():
            if not _is_number(value):
                raise ValueError(f"counter {key!r} is not numeric: {value!r}")
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"counter {key!r} is not a finite non-negative value: {value!r}")
            counters[key] = float(value)
        return cls(capture_time=float(capture_time), counters=counters)


class SnapshotStore:
    """
    Reads and writes the snapshot record at ``path``.

    Args:
        path: Location of the JSON record.
        clock: Returns the current Unix time; used as the capture time of a
            cold start.
        logger: Optional logger, defaults to the module logger.
    """

    def __init__(self, path: str, clock: Callable[[], float] = time.time, logger=None):
        self.path = path
        self.clock = clock
        self.logger = logger or module_logger

    def load_snapshot(self) -> Snapshot:
        """
        Load the previous snapshot.

        Returns:
            The stored Snapshot, or an empty one stamped with the current
            time if no record exists yet.

        Raises:
            SnapshotLoadError: If the record exists but cannot be read or
                does not have a known structure.
        """
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            self.logger.debug(f"No snapshot at {self.path}, starting fresh")
            return Snapshot(capture_time=self.clock())
        except (OSError, ValueError) as e:
            raise SnapshotLoadError(
                f"Cannot read snapshot {self.path}",
                path=self.path,
                reason=str(e)
            ) from e

        try:
            snapshot = Snapshot.from_dict(data)
        except ValueError as e:
            raise SnapshotLoadError(
                f"Snapshot {self.path} is not a valid counter record",
                path=self.path,
                reason=str(e)
            ) from e

        self.logger.debug(
            f"Loaded {len(snapshot.counters)} counters captured at {snapshot.capture_time:.0f} from {self.path}"
        )
        return snapshot

    def load(self) -> Tuple[Dict[str, float], float]:
        """Return ``(counters, capture_time)`` of the previous snapshot."""
        snapshot = self.load_snapshot()
        return snapshot.counters, snapshot.capture_time

    def save(self, counters: Dict[str, float], capture_time: float) -> None:
        """
        Replace the record with ``counters`` captured at ``capture_time``.

        The record is written to a temporary file next to it and renamed into
        place, so a failed save never leaves a truncated record behind.

        Raises:
            SnapshotSaveError: If the record cannot be written.
        """
        snapshot = Snapshot(capture_time=capture_time, counters=dict(counters))
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".snapshot-", dir=directory)
            with os.fdopen(fd, "w") as f:
                json.dump(snapshot.to_dict(), f, sort_keys=True, allow_nan=False)
                f.write("\n")
            os.replace(tmp_path, self.path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            raise SnapshotSaveError(
                f"Cannot save snapshot to {self.path}",
                path=self.path,
                reason=str(e)
            ) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        self.logger.debug(f"Saved {len(snapshot.counters)} counters to {self.path}")
