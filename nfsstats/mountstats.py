"""
Parser for the kernel's /proc/self/mountstats report.

The report lists every mount as a ``device ... mounted on ... with fstype``
line. NFS mounts are followed by an indented block of statistics, of which
only the per-op RPC section is used here:

    device 10.0.0.1:/data/ mounted on /mnt with fstype nfs4 statvers=1.1
        opts:   rw,vers=4,...
        RPC iostats version: 1.0  p/v: 100003/4 (nfs)
        xprt:   tcp 707 0 1 0 28 2019539 2019539 0 2533424 0 259 756960 513900
        per-op statistics
                NULL: 0 0 0 0 0 0 0 0
                READ: 43026 43026 0 7228368 34778206720 1782 2197001 2206478
               WRITE: 60192 60192 0 46259381156 7945344 4905359 1564953 6473964

Each per-op line carries eight counters (see config.RPC_OPERATION_COUNTERS)
and is flattened into ``"<kind>.<device>.<op>"`` keys.
"""

import enum
import io
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from nfsstats.config import RPC_OPERATION_COUNTERS, RPC_OPERATIONS
from nfsstats.errors import MalformedCounterError, NoMountsFoundError, SourceUnavailableError
from nfsstats.keys import CounterKey, sanitize_device

module_logger = logging.getLogger(__name__)

MountStatsInput = Union[str, bytes, io.IOBase]

# device <source> mounted on <path> with fstype <fstype> [statvers=...]
DEVICE_LINE_MIN_FIELDS = 8
MOUNT_POINT_FIELD = 4
FS_TYPE_FIELD = 7


# =============================================================================
# Line classification
# =============================================================================

class LineKind(enum.Enum):
    BLANK = "blank"
    NO_DEVICE = "no_device"
    DEVICE = "device"
    RPC_HEADER = "rpc_header"
    SEPARATOR = "separator"
    DATA = "data"
    OTHER = "other"


SEPARATOR_MARKERS = ("per-op", "xprt:")


@dataclass
class ClassifiedLine:
    kind: LineKind
    fields: List[str]
    text: str


def classify_line(line: str) -> ClassifiedLine:
    """
    Assign a report line to exactly one LineKind.

    Args:
        line: One line of the report, with or without its newline.

    Returns:
        ClassifiedLine holding the kind and the whitespace-split fields.
    """
    fields = line.split()
    if not fields:
        kind = LineKind.BLANK
    elif line.startswith("no device mounted"):
        kind = LineKind.NO_DEVICE
    elif fields[0] == "device":
        kind = LineKind.DEVICE
    elif fields[0] == "RPC":
        kind = LineKind.RPC_HEADER
    elif fields[0] in SEPARATOR_MARKERS:
        kind = LineKind.SEPARATOR
    elif fields[0].endswith(":") and len(fields) > 1:
        kind = LineKind.DATA
    else:
        kind = LineKind.OTHER
    return ClassifiedLine(kind=kind, fields=fields, text=line.rstrip("\n"))


# =============================================================================
# Mount records
# =============================================================================

@dataclass
class NFSMount:
    """One NFS mount found in the report."""
    source: str
    mount_point: str
    fs_type: str
    counters: Dict[str, float] = field(default_factory=dict)

    @property
    def device(self) -> str:
        return sanitize_device(self.mount_point)


def is_nfs_fstype(fs_type: str) -> bool:
    return "nfs" in fs_type


def parse_per_op_line(fields: List[str], device: str, text: str = "") -> Dict[str, float]:
    """
    Extract the counters of a READ or WRITE per-op line.

    Args:
        fields: Whitespace-split line, first field is ``<OPNAME>:``.
        device: Sanitized device name the counters belong to.
        text: Original line, only used for error details.

    Returns:
        Mapping of storage key to counter value. Empty for operations
        other than READ and WRITE.

    Raises:
        MalformedCounterError: If one of the counter fields is not a finite
            non-negative number. No values of the line are returned in that case.
    """
    operation = fields[0].rstrip(":").lower()
    if operation not in RPC_OPERATIONS:
        return {}

    values = {}
    # Newer kernels append an errors column; only the first eight are used
    for kind, token in zip(RPC_OPERATION_COUNTERS, fields[1:]):
        try:
            value = float(token)
        except ValueError:
            raise MalformedCounterError(token, line=text, device=device) from None
        # float() also takes nan, inf, signs and digit separators
        if "_" in token or not math.isfinite(value) or value < 0:
            raise MalformedCounterError(token, line=text, device=device)
        values[CounterKey(kind, device, operation).to_storage_key()] = value

    if len(values) < len(RPC_OPERATION_COUNTERS):
        module_logger.debug(f"Short per-op line for {device}: {text.strip()}")
    return values


# =============================================================================
# Report parsing
# =============================================================================

def _read_content(content: MountStatsInput) -> str:
    if hasattr(content, "read"):
        content = content.read()
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    return content


def parse_mount_blocks(content: MountStatsInput, logger=None) -> List[NFSMount]:
    """
    Split the report into NFS mounts and collect their READ/WRITE counters.

    A mount path listed twice is merged into one NFSMount. Non-NFS mounts
    and everything nested under them are skipped.

    Raises:
        NoMountsFoundError: If no nfs/nfs4 mount is present.
    """
    logger = logger or module_logger
    text = _read_content(content)

    mounts: Dict[str, NFSMount] = {}
    current: Optional[NFSMount] = None
    in_rpc_section = False
    device_lines = 0

    for raw_line in text.splitlines():
        line = classify_line(raw_line)

        if line.kind in (LineKind.BLANK, LineKind.NO_DEVICE):
            current = None
            continue

        if line.kind == LineKind.DEVICE:
            device_lines += 1
            current = None
            in_rpc_section = False
            if len(line.fields) < DEVICE_LINE_MIN_FIELDS:
                continue
            fs_type = line.fields[FS_TYPE_FIELD]
            if not is_nfs_fstype(fs_type):
                continue
            mount_point = line.fields[MOUNT_POINT_FIELD]
            current = mounts.get(mount_point)
            if current is None:
                current = NFSMount(source=line.fields[1], mount_point=mount_point, fs_type=fs_type)
                mounts[mount_point] = current
                logger.debug(f"Found {fs_type} mount {mount_point} -> device '{current.device}'")
            continue

        if current is None:
            continue

        if line.kind == LineKind.RPC_HEADER:
            in_rpc_section = True
        elif line.kind == LineKind.DATA and in_rpc_section:
            try:
                current.counters.update(parse_per_op_line(line.fields, current.device, line.text))
            except MalformedCounterError as e:
                logger.warning(f"Dropping per-op line for {current.device}: {e.error.message}")
                logger.debug(str(e))
        # SEPARATOR and OTHER lines carry nothing we keep

    if not mounts:
        raise NoMountsFoundError(mounts_seen=device_lines)

    return list(mounts.values())


def parse_mountstats(content: MountStatsInput, logger=None) -> Tuple[List[str], Dict[str, float]]:
    """
    Parse a mountstats report into devices and a flat counter snapshot.

    Args:
        content: Report text, raw bytes, or a readable stream.
        logger: Optional logger, defaults to the module logger.

    Returns:
        Tuple of (devices in discovery order, counters keyed
        ``"<kind>.<device>.<op>"``).

    Raises:
        NoMountsFoundError: If no nfs/nfs4 mount is present.

    Example:
        >>> devices, counters = parse_mountstats(report)
        >>> counters[f"ops.{devices[0]}.read"]
        43026.0
    """
    devices: List[str] = []
    counters: Dict[str, float] = {}
    for mount in parse_mount_blocks(content, logger=logger):
        if mount.device not in devices:
            devices.append(mount.device)
        counters.update(mount.counters)
    return devices, counters


def read_mountstats(path: str) -> str:
    """
    Read the whole report from ``path``.

    Raises:
        SourceUnavailableError: If the file cannot be opened or read.
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise SourceUnavailableError(
            f"Cannot read mount statistics from {path}",
            path=path,
            reason=e.strerror or str(e)
        ) from e
    return data.decode("utf-8", errors="replace")
