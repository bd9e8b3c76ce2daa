"""
Interface definitions for nfsstats.
"""

from nfsstats.interfaces.sink import MetricSink

__all__ = ['MetricSink']
