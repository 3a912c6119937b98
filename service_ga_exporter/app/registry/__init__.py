"""
Registry package for the exporter.

Holds the Prometheus gauges that mirror Google Analytics realtime values
and the naming rules used to derive their series names.
"""

from .gauges import GaugeRegistry, ScalarHandle, VectorHandle, sanitize_label, series_name

__all__ = [
    "GaugeRegistry",
    "ScalarHandle",
    "VectorHandle",
    "sanitize_label",
    "series_name",
]
