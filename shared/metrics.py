"""
Shared metrics configuration for the Google Analytics exporter.

These are the exporter's own series. They live on the same registry as the
republished Google Analytics gauges so one scrape returns both.
"""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    PlatformCollector,
    ProcessCollector,
)
from typing import Dict, Any, Optional
import time
from contextlib import contextmanager


class ExporterMetrics:
    """Centralized self-instrumentation for the exporter."""

    def __init__(self, registry: Optional[CollectorRegistry] = None, process_collectors: bool = True):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

        if process_collectors:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)

    def _setup_metrics(self):
        """Set up exporter metrics."""

        # Fetch metrics
        self._metrics["fetch_total"] = Counter(
            "ga_exporter_fetch_total",
            "Total realtime API fetches",
            ["metric", "outcome"],
            registry=self.registry
        )

        self._metrics["fetch_duration_seconds"] = Histogram(
            "ga_exporter_fetch_duration_seconds",
            "Realtime API fetch-and-update duration in seconds",
            ["metric"],
            registry=self.registry
        )

        # Silent data paths
        self._metrics["values_coerced_total"] = Counter(
            "ga_exporter_values_coerced_total",
            "Non-numeric cells exported as zero",
            ["metric"],
            registry=self.registry
        )

        self._metrics["rows_dropped_total"] = Counter(
            "ga_exporter_rows_dropped_total",
            "Result rows skipped without a series update",
            ["metric", "reason"],
            registry=self.registry
        )

        # Scheduler
        self._metrics["runs_skipped_total"] = Counter(
            "ga_exporter_runs_skipped_total",
            "Worker runs skipped because the previous run was still in flight",
            ["metric"],
            registry=self.registry
        )

        # HTTP surface
        self._metrics["http_requests_total"] = Counter(
            "ga_exporter_http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "ga_exporter_health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

    def record_fetch(self, metric: str, outcome: str):
        """Record the outcome of one worker run."""
        self._metrics["fetch_total"].labels(metric=metric, outcome=outcome).inc()

    def record_coerced_value(self, metric: str):
        """Record a cell that could not be parsed as a float."""
        self._metrics["values_coerced_total"].labels(metric=metric).inc()

    def record_dropped_row(self, metric: str, reason: str):
        """Record a row skipped by a worker."""
        self._metrics["rows_dropped_total"].labels(metric=metric, reason=reason).inc()

    def record_skipped_run(self, metric: str):
        """Record a run suppressed by the in-flight guard."""
        self._metrics["runs_skipped_total"].labels(metric=metric).inc()

    def record_http_request(self, method: str, endpoint: str, status_code: int):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    @contextmanager
    def time_fetch(self, metric: str):
        """Context manager to time a worker run."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            self._metrics["fetch_duration_seconds"].labels(metric=metric).observe(duration)


def get_exporter_metrics(registry: Optional[CollectorRegistry] = None,
                         process_collectors: bool = True) -> ExporterMetrics:
    """Get the exporter self-instrumentation."""
    return ExporterMetrics(registry, process_collectors)
