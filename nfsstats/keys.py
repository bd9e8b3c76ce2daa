"""
Structured keys for counters and published metrics.

Counters are stored flat as ``"<kind>.<device>.<operation>"`` so snapshots
stay readable by older collectors. Building and splitting those strings
happens only here.
"""

from dataclasses import dataclass

from nfsstats.config import RPC_OPERATION_COUNTERS, RPC_OPERATIONS, METRIC_CATEGORIES


def sanitize_device(mount_point: str) -> str:
    """
    Turn a mount point into a metric-safe device name.

    Example:
        >>> sanitize_device("/mnt/data/")
        'mnt_data'
    """
    return mount_point.strip("/").replace("/", "_")


def _split_key(key: str):
    # Device names may contain dots (e.g. /mnt/v1.2), the kind and the
    # operation never do.
    head, sep, tail = key.partition(".")
    device, sep2, operation = tail.rpartition(".")
    if not sep or not sep2:
        raise ValueError(f"Not a <kind>.<device>.<operation> key: {key!r}")
    return head, device, operation


@dataclass(frozen=True)
class CounterKey:
    """Identifies one raw counter in a snapshot."""
    kind: str
    device: str
    operation: str

    def __post_init__(self):
        if self.kind not in RPC_OPERATION_COUNTERS:
            raise ValueError(f"Unknown counter kind: {self.kind!r}")
        if self.operation not in RPC_OPERATIONS:
            raise ValueError(f"Unknown RPC operation: {self.operation!r}")

    def to_storage_key(self) -> str:
        return f"{self.kind}.{self.device}.{self.operation}"

    @classmethod
    def from_storage_key(cls, key: str) -> 'CounterKey':
        return cls(*_split_key(key))

    def __str__(self) -> str:
        return self.to_storage_key()


@dataclass(frozen=True)
class MetricKey:
    """Identifies one published metric."""
    category: str
    device: str
    operation: str

    def __post_init__(self):
        if self.category not in METRIC_CATEGORIES:
            raise ValueError(f"Unknown metric category: {self.category!r}")
        if self.operation not in RPC_OPERATIONS:
            raise ValueError(f"Unknown RPC operation: {self.operation!r}")

    @property
    def name(self) -> str:
        return f"{self.category}.{self.device}.{self.operation}"

    @classmethod
    def from_name(cls, name: str) -> 'MetricKey':
        return cls(*_split_key(name))

    def __str__(self) -> str:
        return self.name
