"""
Constants and defaults shared across the nfsstats package.
"""

import enum
import os
import tempfile

# =============================================================================
# Metric namespace
# =============================================================================

DEFAULT_PREFIX = "nfs"
DEFAULT_MOUNTSTATS_PATH = "/proc/self/mountstats"

# Per-op fields in /proc/self/mountstats, in column order:
#   ops         requests of this op type
#   trans       transmissions, including retransmissions
#   timeouts    major timeouts
#   bytes_sent  bytes sent, headers included
#   bytes_recv  bytes received, headers included
#   queue       cumulative usecs waiting in the transmit queue
#   rtt         cumulative usecs waiting for replies
#   execute     cumulative usecs from rpc_init_task to rpc_exit_task
RPC_OPERATION_COUNTERS = (
    "ops",
    "trans",
    "timeouts",
    "bytes_sent",
    "bytes_recv",
    "queue",
    "rtt",
    "execute",
)

RPC_OPERATIONS = (
    "read",
    "write",
)

METRIC_CATEGORIES = (
    "ops",
    "throughput",
    "bytes_ops",
    "retrans_num",
    "retrans_rate",
    "rtt_ave",
    "execute_ave",
    "queue_ave",
)

# A prior snapshot older than this is not used for per-second rates
STALE_INTERVAL_SECONDS = 600

# =============================================================================
# Snapshot record
# =============================================================================

SNAPSHOT_SCHEMA_VERSION = 1
LEGACY_TIME_KEY = "_lastTime"

WORKDIR_ENV = "MACKEREL_PLUGIN_WORKDIR"
PLUGIN_META_ENV = "MACKEREL_AGENT_PLUGIN_META"
PLUGIN_META_HEADER = "# mackerel-agent-plugin"


def plugin_workdir() -> str:
    """Directory for the snapshot record when --workdir is not given."""
    return os.environ.get(WORKDIR_ENV) or tempfile.gettempdir()


def default_tempfile_name(prefix: str) -> str:
    return f"mackerel-plugin-{prefix}"


class EXIT_CODE(enum.IntEnum):
    SUCCESS = 0
    FAILURE = 1
    INVALID_ARGUMENTS = 2
    SOURCE_ERROR = 3
    NO_MOUNTS = 4
    SNAPSHOT_ERROR = 5
    INTERRUPTED = 130
