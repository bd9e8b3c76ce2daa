"""
Rate derivation from two counter snapshots.

Mountstats counters only ever grow, so each invocation diffs the current
snapshot against the one saved by the previous run and divides by the time
between them. Averages are taken per operation over the same interval:

    ops           ops / elapsed                       (requests per second)
    throughput    (bytes_sent + bytes_recv) / elapsed (bytes per second)
    bytes_ops     (bytes_sent + bytes_recv) / ops     (bytes per request)
    retrans_num   trans - ops                         (retransmissions)
    retrans_rate  retrans_num / ops
    rtt_ave       rtt / ops                           (usecs per request)
    execute_ave   execute / ops
    queue_ave     queue / ops

A value divided by a zero op count is not published.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from nfsstats.config import RPC_OPERATIONS, STALE_INTERVAL_SECONDS
from nfsstats.errors import CounterResetError, StaleIntervalError
from nfsstats.keys import CounterKey, MetricKey

module_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricSample:
    """One derived value ready for publishing."""
    category: str
    device: str
    operation: str
    value: float

    @property
    def key(self) -> MetricKey:
        return MetricKey(self.category, self.device, self.operation)

    @property
    def name(self) -> str:
        return self.key.name


def _safe_div(numerator: float, denominator: float) -> Optional[float]:
    if denominator == 0:
        return None
    value = numerator / denominator
    return value if math.isfinite(value) else None


def diff_counters(current: Dict[str, float], previous: Dict[str, float], logger=None) -> Dict[str, float]:
    """
    Subtract the previous snapshot from the current one, key by key.

    Keys missing from ``previous`` have no baseline and are left out. A
    counter that went down was reset; its diff is clamped to zero.

    Args:
        current: Counters captured by this run.
        previous: Counters captured by the previous run.
        logger: Optional logger, defaults to the module logger.

    Returns:
        Mapping of storage key to non-negative diff.
    """
    logger = logger or module_logger
    diffs = {}
    for key, value in current.items():
        if key not in previous:
            logger.info(f"{key} does not exist at last fetch")
            continue
        diff = value - previous[key]
        if diff < 0:
            logger.warning(str(CounterResetError(key, value, previous[key])))
            diff = 0.0
        diffs[key] = diff
    return diffs


def _derive_operation(diffs: Dict[str, float], device: str, operation: str,
                      elapsed: float) -> List[MetricSample]:
    def counter(kind):
        return diffs.get(CounterKey(kind, device, operation).to_storage_key())

    ops = counter("ops")
    if ops is None:
        # No baseline for this device/operation; nothing to publish
        return []

    values = [("ops", ops / elapsed)]

    # Every other metric needs all of its inputs to have a baseline
    bytes_sent, bytes_recv = counter("bytes_sent"), counter("bytes_recv")
    if bytes_sent is not None and bytes_recv is not None:
        transferred = bytes_sent + bytes_recv
        values.append(("throughput", transferred / elapsed))
        values.append(("bytes_ops", _safe_div(transferred, ops)))

    trans = counter("trans")
    if trans is not None:
        retrans = trans - ops
        values.append(("retrans_num", retrans))
        values.append(("retrans_rate", _safe_div(retrans, ops)))

    for kind, category in (("rtt", "rtt_ave"), ("execute", "execute_ave"), ("queue", "queue_ave")):
        total = counter(kind)
        if total is not None:
            values.append((category, _safe_div(total, ops)))

    return [
        MetricSample(category=category, device=device, operation=operation, value=value)
        for category, value in values
        if value is not None
    ]


def derive_samples(devices: Iterable[str], current: Dict[str, float], previous: Dict[str, float],
                   current_time: float, previous_time: float,
                   logger=None) -> Optional[List[MetricSample]]:
    """
    Derive the published metrics for every device and READ/WRITE operation.

    Args:
        devices: Device names returned by the parser.
        current: Counters captured by this run.
        previous: Counters captured by the previous run.
        current_time: Unix time of ``current``.
        previous_time: Unix time of ``previous``.
        logger: Optional logger, defaults to the module logger.

    Returns:
        List of MetricSample, or None if the interval cannot be used: older
        than STALE_INTERVAL_SECONDS, or not positive.
    """
    logger = logger or module_logger
    elapsed = current_time - previous_time
    if elapsed > STALE_INTERVAL_SECONDS:
        logger.warning(str(StaleIntervalError(elapsed, STALE_INTERVAL_SECONDS)))
        return None
    if elapsed <= 0:
        logger.info(f"No time elapsed since the previous snapshot ({elapsed:g}s), skipping rates")
        return None

    diffs = diff_counters(current, previous, logger=logger)

    samples = []
    for device in devices:
        for operation in RPC_OPERATIONS:
            samples.extend(_derive_operation(diffs, device, operation, elapsed))
    return samples


def derive_metrics(devices: Iterable[str], current: Dict[str, float], previous: Dict[str, float],
                   current_time: float, previous_time: float,
                   logger=None) -> Optional[Dict[str, float]]:
    """Same as derive_samples, keyed by metric name."""
    samples = derive_samples(devices, current, previous, current_time, previous_time, logger=logger)
    if samples is None:
        return None
    return {sample.name: sample.value for sample in samples}
