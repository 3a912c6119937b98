"""
Gauge registry for republished Google Analytics values.

Two families of series are kept:

- scalar gauges, one per configured metric, registered at startup;
- labeled gauge vectors, one per derived dimension name, registered
  lazily the first time a worker sees that dimension value.

Every series carries a ``job`` label holding the exporter job name.
"""

import re
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from prometheus_client import CollectorRegistry, Gauge

from shared.errors import RegistrationError
from shared.logging import get_logger


LABEL_PREFIX = "rt:"
SERIES_PREFIX = "ga_"
HELP_PREFIX = "Google Analytics"
CATEGORY_LABEL = "category"
JOB_LABEL = "job"

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]+")


def sanitize_label(raw: str) -> str:
    """Turn an API-returned dimension value into a derived series name."""
    stripped = _NON_ALPHANUMERIC.sub("", raw)
    return "_".join([LABEL_PREFIX, stripped]).replace(" ", "_")


def series_name(name: str) -> str:
    """Exported series name for a metric or derived name."""
    return f"{SERIES_PREFIX}{name.replace(':', '_', 1)}"


@dataclass(frozen=True)
class ScalarHandle:
    """Handle to a scalar gauge."""
    name: str
    series: str
    gauge: Gauge
    job: str

    def set(self, value: float) -> None:
        self.gauge.labels(**{JOB_LABEL: self.job}).set(value)


@dataclass(frozen=True)
class VectorHandle:
    """Handle to a gauge vector keyed by category."""
    name: str
    series: str
    gauge: Gauge
    job: str

    def set(self, category: str, value: float) -> None:
        self.gauge.labels(**{JOB_LABEL: self.job, CATEGORY_LABEL: category}).set(value)


class GaugeRegistry:
    """Owns the scalar and vector gauges exported for Google Analytics."""

    def __init__(self, registry: Optional[CollectorRegistry] = None, job: str = "googleAnalytics"):
        self.registry = registry if registry is not None else CollectorRegistry()
        self.job = job
        self.logger = get_logger("ga_exporter.registry")

        self._scalars: Dict[str, ScalarHandle] = {}
        self._vectors: Dict[str, VectorHandle] = {}
        self._lock = threading.Lock()

    def register_scalar(self, name: str) -> ScalarHandle:
        """Register the scalar gauge for a configured metric."""
        with self._lock:
            existing = self._scalars.get(name)
            if existing is not None:
                return existing

            gauge = self._new_gauge(name, [JOB_LABEL])
            handle = ScalarHandle(name=name, series=series_name(name), gauge=gauge, job=self.job)
            # Materialize the child so the series is exported before the first fetch
            gauge.labels(**{JOB_LABEL: self.job})
            self._scalars[name] = handle

        self.logger.info("Scalar series registered", name=name, series=handle.series)
        return handle

    def set_scalar(self, handle: ScalarHandle, value: float) -> None:
        handle.set(value)

    def register_vector(self, derived_name: str) -> VectorHandle:
        """Register a gauge vector, or return the one already registered."""
        with self._lock:
            existing = self._vectors.get(derived_name)
            if existing is not None:
                return existing

            gauge = self._new_gauge(derived_name, [JOB_LABEL, CATEGORY_LABEL])
            handle = VectorHandle(
                name=derived_name,
                series=series_name(derived_name),
                gauge=gauge,
                job=self.job,
            )
            self._vectors[derived_name] = handle

        self.logger.info("Vector series registered", name=derived_name, series=handle.series)
        return handle

    def set_vector_value(self, handle: VectorHandle, category: str, value: float) -> None:
        handle.set(category, value)

    def scalar(self, name: str) -> Optional[ScalarHandle]:
        return self._scalars.get(name)

    def vector(self, derived_name: str) -> Optional[VectorHandle]:
        return self._vectors.get(derived_name)

    def scalar_names(self) -> List[str]:
        return list(self._scalars)

    def vector_names(self) -> List[str]:
        return list(self._vectors)

    def get_value(self, name: str, category: Optional[str] = None) -> Optional[float]:
        """Current exported value of a scalar (or vector cell when category is given)."""
        labels = {JOB_LABEL: self.job}
        if category is not None:
            labels[CATEGORY_LABEL] = category
        return self.registry.get_sample_value(series_name(name), labels)

    def _new_gauge(self, name: str, labelnames: List[str]) -> Gauge:
        """Create and register a gauge; caller holds the lock."""
        try:
            return Gauge(
                series_name(name),
                f"{HELP_PREFIX} {name}",
                labelnames,
                registry=self.registry,
            )
        except ValueError as e:
            self.logger.error("Series registration refused", name=name, error=str(e))
            raise RegistrationError(name, str(e), {"series": series_name(name)}) from e
