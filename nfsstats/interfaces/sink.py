"""
Metric sink interface.

The collector computes a flat ``{metric name: value}`` mapping once per
invocation and hands it to a sink. The sink owns timestamping and
transport; the monitoring agent plugin protocol is one implementation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class MetricSink(ABC):
    """Interface for publishing a derived metric set.

    Example:
        class ListSink(MetricSink):
            def __init__(self):
                self.published = []

            def emit_metrics(self, metrics, timestamp):
                self.published.append((timestamp, dict(metrics)))

            def emit_graph_definitions(self, graphs):
                pass
    """

    @abstractmethod
    def emit_metrics(self, metrics: Dict[str, float], timestamp: float) -> None:
        """Publish one metric set.

        Args:
            metrics: Values keyed ``<category>.<device>.<operation>``.
            timestamp: Unix time the underlying counters were captured.
        """
        pass

    @abstractmethod
    def emit_graph_definitions(self, graphs: Dict[str, Any]) -> None:
        """Publish the graph definitions describing the metrics."""
        pass
