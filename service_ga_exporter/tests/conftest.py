"""
Shared fixtures for exporter tests.
"""

import asyncio
from typing import List, Optional, Tuple

import pytest
from prometheus_client import CollectorRegistry

from service_ga_exporter.app.clients.realtime import QueryResult
from service_ga_exporter.app.config.loader import ExporterConfig
from service_ga_exporter.app.ingestion.dimensions import DimensionResolver
from service_ga_exporter.app.ingestion.worker import MetricWorker
from service_ga_exporter.app.registry.gauges import GaugeRegistry
from shared.config import ExporterSettings
from shared.metrics import ExporterMetrics


class FakeRealtimeSource:
    """In-memory stand-in for the realtime API client."""

    def __init__(self, results=None, error: Optional[Exception] = None):
        self.results = results or {}
        self.error = error
        self.calls: List[Tuple[str, str, Optional[str]]] = []
        self.release: Optional[asyncio.Event] = None

    async def get(self, view_id: str, metric: str, dimensions: Optional[str] = None) -> QueryResult:
        self.calls.append((view_id, metric, dimensions))
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return QueryResult(rows=self.results.get(metric, []))


@pytest.fixture
def collector_registry():
    """Fresh Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def gauges(collector_registry):
    """GaugeRegistry bound to a fresh Prometheus registry."""
    return GaugeRegistry(collector_registry)


@pytest.fixture
def exporter_metrics(collector_registry):
    """Self-instrumentation on the same registry, without process collectors."""
    return ExporterMetrics(collector_registry, process_collectors=False)


@pytest.fixture
def fake_source():
    """Fake realtime source with no canned results."""
    return FakeRealtimeSource()


@pytest.fixture
def worker(fake_source, gauges, exporter_metrics):
    """MetricWorker wired to the fake source."""
    resolver = DimensionResolver([{"rt:pageviews": ["rt:country", "rt:deviceCategory"]}])
    return MetricWorker(fake_source, gauges, resolver, "ga:12345", exporter_metrics)


@pytest.fixture
def exporter_config():
    """Exporter configuration as loaded from conf.yaml."""
    return ExporterConfig(
        interval=60,
        metrics=["rt:activeUsers", "rt:pageviews"],
        dimensions=[{"rt:pageviews": ["rt:country", "rt:deviceCategory"]}],
        viewid="ga:12345",
        promport=9100,
    )


@pytest.fixture
def settings():
    """Exporter settings that do not depend on the environment."""
    return ExporterSettings(
        config_file="unused.yaml",
        cred_file="unused.json",
        log_level="warning",
    )
