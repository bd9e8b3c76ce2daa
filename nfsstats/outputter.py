"""
Monitoring agent plugin output.

Metric values are written to stdout one per line:

    nfs.ops.mnt.read\t2.000000\t1536731220

When the agent asks for plugin metadata (MACKEREL_AGENT_PLUGIN_META=1), the
graph definitions are written instead, as a JSON document after a
``# mackerel-agent-plugin`` header line.
"""

import json
import os
import sys
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, TextIO

from nfsstats.config import (
    DEFAULT_PREFIX,
    METRIC_CATEGORIES,
    PLUGIN_META_ENV,
    PLUGIN_META_HEADER,
    RPC_OPERATIONS,
)
from nfsstats.interfaces.sink import MetricSink


@dataclass
class GraphMetric:
    name: str
    label: str
    stacked: bool = False


@dataclass
class Graph:
    label: str
    unit: str
    metrics: List[GraphMetric] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# category -> (label suffix, unit)
GRAPH_LABELS = {
    "ops": ("Operations", "iops"),
    "throughput": ("Throughput", "bytes/sec"),
    "bytes_ops": ("Byte Per Operations", "bytes"),
    "retrans_num": ("Retrans Num", "integer"),
    "retrans_rate": ("Retrans Rate", "percentage"),
    "rtt_ave": ("RTT Average (ms)", "integer"),
    "execute_ave": ("Execute Average (ms)", "integer"),
    "queue_ave": ("Queue Average (ms)", "integer"),
}


def label_prefix(prefix: str) -> str:
    """
    Example:
        >>> label_prefix("nfs")
        'NFS'
    """
    return prefix.replace("nfs", "NFS").upper()


def graph_definitions(prefix: str = DEFAULT_PREFIX) -> Dict[str, Graph]:
    """Return one graph per metric category, keyed ``<category>.#``."""
    title = label_prefix(prefix)
    graphs = {}
    for category in METRIC_CATEGORIES:
        suffix, unit = GRAPH_LABELS[category]
        graphs[f"{category}.#"] = Graph(
            label=f"{title} {suffix}",
            unit=unit,
            metrics=[GraphMetric(name=op, label=f"{op}s") for op in RPC_OPERATIONS],
        )
    return graphs


def plugin_meta_requested(environ=None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get(PLUGIN_META_ENV, "") == "1"


class PluginOutputter(MetricSink):
    """
    Writes metrics in the agent plugin text format.

    Args:
        prefix: Metric key prefix prepended to every metric and graph name.
        stream: Output stream, stdout by default.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX, stream: Optional[TextIO] = None):
        self.prefix = prefix
        self.stream = stream if stream is not None else sys.stdout

    def format_metrics(self, metrics: Dict[str, float], timestamp: float) -> List[str]:
        epoch = int(timestamp)
        return [
            f"{self.prefix}.{name}\t{value:f}\t{epoch}"
            for name, value in sorted(metrics.items())
        ]

    def emit_metrics(self, metrics: Dict[str, float], timestamp: float) -> None:
        for line in self.format_metrics(metrics, timestamp):
            self.stream.write(line + "\n")
        self.stream.flush()

    def emit_graph_definitions(self, graphs: Dict[str, Graph]) -> None:
        document = {
            "graphs": {
                f"{self.prefix}.{name}": graph.to_dict() if isinstance(graph, Graph) else graph
                for name, graph in graphs.items()
            }
        }
        self.stream.write(PLUGIN_META_HEADER + "\n")
        self.stream.write(json.dumps(document) + "\n")
        self.stream.flush()
