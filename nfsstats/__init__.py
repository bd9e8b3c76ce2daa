"""
NFS client statistics collector.

Reads the per-mount RPC counters from /proc/self/mountstats, keeps a snapshot
between invocations and publishes per-interval rates and averages for READ and
WRITE operations.
"""

VERSION = "0.1.0"
__version__ = VERSION
