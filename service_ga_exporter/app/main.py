"""
Google Analytics exporter service.
"""

import asyncio
import sys
from typing import Any, Dict, Mapping, Optional

import uvicorn
from prometheus_client import CollectorRegistry

from shared.base_service import BaseService
from shared.config import ExporterSettings
from shared.errors import ExporterException
from shared.logging import get_logger

from .clients.credentials import ServiceAccountTokenSource
from .clients.realtime import RealtimeClient
from .config.loader import ExporterConfig, load_credentials, load_exporter_config
from .ingestion.dimensions import DimensionResolver
from .ingestion.scheduler import PollScheduler
from .ingestion.worker import MetricWorker, RealtimeSource
from .registry.gauges import GaugeRegistry


class GAExporterService(BaseService):
    """Exporter service implementation."""

    def __init__(
        self,
        settings: Optional[ExporterSettings] = None,
        exporter_config: Optional[ExporterConfig] = None,
        credentials: Optional[Mapping[str, str]] = None,
        source: Optional[RealtimeSource] = None,
        registry: Optional[CollectorRegistry] = None,
    ):
        super().__init__(settings, registry)

        self.exporter_config = exporter_config or load_exporter_config(self.config.config_file)
        self.port = self.exporter_config.promport

        # All configured metrics are exported as scalar gauges from the start
        self.gauges = GaugeRegistry(self.registry, job=self.config.job_label)
        for metric in self.exporter_config.metrics:
            self.gauges.register_scalar(metric)

        if source is None:
            creds = credentials or load_credentials(self.config.cred_file)
            token_source = ServiceAccountTokenSource(creds)
            source = RealtimeClient(
                token_source,
                api_url=self.config.api_url,
                timeout=self.config.request_timeout_seconds,
            )
        self.source = source

        self.resolver = DimensionResolver(self.exporter_config.dimensions)
        self.worker = MetricWorker(
            source=self.source,
            registry=self.gauges,
            resolver=self.resolver,
            view_id=self.exporter_config.viewid,
            metrics=self.metrics,
        )
        self.scheduler = PollScheduler(
            worker=self.worker,
            metrics=self.exporter_config.metrics,
            interval_seconds=self.exporter_config.interval,
            exporter_metrics=self.metrics,
            fatal_fetch_errors=self.config.fatal_fetch_errors,
            skip_in_flight=self.config.skip_in_flight,
        )

        self.fatal_error: Optional[BaseException] = None
        self._server: Optional[uvicorn.Server] = None

        self._setup_exporter_routes()

    def _setup_exporter_routes(self):
        """Set up exporter-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": self.service_name,
                "message": "Google Analytics Realtime Exporter",
                "version": "1.0.0",
                "viewid": self.exporter_config.viewid,
                "interval_seconds": self.exporter_config.interval,
                "metrics": list(self.exporter_config.metrics),
                "series": {
                    "scalar": self.gauges.scalar_names(),
                    "vector": self.gauges.vector_names(),
                },
            }

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Check exporter dependencies."""
        return {
            "poll_loop": "ok" if self.scheduler.running else "stopped",
            "scheduler": self.scheduler.get_status(),
        }

    async def start(self):
        """Start the poll loop."""
        task = self.scheduler.start()
        task.add_done_callback(self._on_poll_loop_done)
        self.logger.info("Exporter started", port=self.port, metrics=len(self.exporter_config.metrics))

    async def stop(self):
        """Stop the poll loop."""
        await self.scheduler.stop()
        self.logger.info("Exporter stopped")

    def _on_poll_loop_done(self, task: asyncio.Task):
        if task.cancelled() or task.exception() is None:
            return
        self.fatal_error = task.exception()
        self.logger.critical("Poll loop terminated", error=str(self.fatal_error))
        if self._server is not None:
            self._server.should_exit = True

    async def serve(self):
        """Serve /metrics and poll until stopped or a fatal error occurs."""
        config = uvicorn.Config(
            self.app,
            host=self.config.host,
            port=self.port,
            log_level=self.config.log_level.lower(),
        )
        self._server = uvicorn.Server(config)
        await self._server.serve()

    def run(self):
        """Run the service; exits non-zero if the poll loop died."""
        asyncio.run(self.serve())
        if self.fatal_error is not None:
            sys.exit(1)


def main():
    try:
        service = GAExporterService()
    except ExporterException as e:
        get_logger("ga_exporter.main").critical("Startup failed", code=e.code, message=e.message, details=e.details)
        sys.exit(1)
    service.run()


if __name__ == "__main__":
    main()
