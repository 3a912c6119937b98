"""
Ingestion package: the poll loop, the per-metric worker and the dimension
lookup it relies on.
"""

from .dimensions import DimensionResolver
from .worker import MetricWorker
from .scheduler import PollScheduler

__all__ = ["DimensionResolver", "MetricWorker", "PollScheduler"]
