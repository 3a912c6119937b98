"""
Fetch-and-update worker for a single metric.
"""

import re
from typing import List, Optional, Protocol, Tuple

from shared.logging import get_logger
from shared.metrics import ExporterMetrics

from ..clients.realtime import QueryResult
from ..registry.gauges import GaugeRegistry, sanitize_label
from .dimensions import DimensionResolver


NOT_SET = "(not set)"

# Strict float syntax: no surrounding whitespace, underscores only between
# digits, hex mantissas need a p exponent.
_DEC = r"[0-9](?:_?[0-9])*"
_HEX = r"[0-9a-fA-F](?:_?[0-9a-fA-F])*"
_DECIMAL_RE = re.compile(rf"[+-]?(?:{_DEC}(?:\.(?:{_DEC})?)?|\.{_DEC})(?:[eE][+-]?{_DEC})?")
_HEX_RE = re.compile(rf"[+-]?0[xX](?:_?{_HEX}(?:\.(?:{_HEX})?)?|\.{_HEX})[pP][+-]?{_DEC}")
_SPECIAL_RE = re.compile(r"[+-]?inf(?:inity)?|nan", re.IGNORECASE)


class RealtimeSource(Protocol):
    async def get(self, view_id: str, metric: str, dimensions: Optional[str] = None) -> QueryResult:
        ...


def parse_value(cell: Optional[str]) -> Tuple[float, bool]:
    """Parse a cell as float; unparsable cells read as zero.

    Returns the value and whether it was coerced.
    """
    if cell is None:
        return 0.0, True
    if _DECIMAL_RE.fullmatch(cell) or _SPECIAL_RE.fullmatch(cell):
        return float(cell.replace("_", "")), False
    if _HEX_RE.fullmatch(cell):
        return float.fromhex(cell.replace("_", "")), False
    return 0.0, True


class MetricWorker:
    """Fetches one metric from the data source and writes it into the registry."""

    def __init__(
        self,
        source: RealtimeSource,
        registry: GaugeRegistry,
        resolver: DimensionResolver,
        view_id: str,
        metrics: Optional[ExporterMetrics] = None,
    ):
        self.source = source
        self.registry = registry
        self.resolver = resolver
        self.view_id = view_id
        self.metrics = metrics
        self.logger = get_logger("ga_exporter.worker")

    async def run(self, metric: str) -> None:
        """Fetch ``metric`` and update its series.

        Errors from the data source or the registry propagate to the caller.
        """
        dimensions = self.resolver.dimensions_for(metric)
        result = await self.source.get(self.view_id, metric, dimensions or None)
        self.apply(metric, result.rows)

    def apply(self, metric: str, rows: List[List[str]]) -> None:
        """Write one query result into the registry."""
        if len(rows) == 1:
            row = rows[0]
            value = self._value(metric, row[0] if row else None)
            handle = self.registry.scalar(metric) or self.registry.register_scalar(metric)
            self.registry.set_scalar(handle, value)
            self.logger.debug("Scalar updated", value=value)
            return

        updated = 0
        for row in rows:
            if len(row) < 3:
                self.logger.warning("Malformed row skipped", cells=len(row))
                self._dropped(metric, "malformed")
                continue

            category = row[0]
            if NOT_SET in category:
                self._dropped(metric, "not_set")
                continue

            handle = self.registry.register_vector(sanitize_label(row[1]))
            value = self._value(metric, row[2])
            self.registry.set_vector_value(handle, category, value)
            updated += 1

        self.logger.debug("Vector rows updated", rows=len(rows), updated=updated)

    def _value(self, metric: str, cell: Optional[str]) -> float:
        value, coerced = parse_value(cell)
        if coerced and self.metrics:
            self.metrics.record_coerced_value(metric)
        return value

    def _dropped(self, metric: str, reason: str) -> None:
        if self.metrics:
            self.metrics.record_dropped_row(metric, reason)
