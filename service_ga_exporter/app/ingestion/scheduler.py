"""
Poll loop for the exporter.

Every interval the scheduler starts one worker task per configured metric and
goes back to sleep without waiting for them. Runs for the same metric may
overlap across ticks unless ``skip_in_flight`` is enabled.
"""

import asyncio
from collections import Counter
from datetime import datetime
from functools import partial
from typing import Any, Dict, List, Optional, Sequence, Set

from shared.errors import RegistrationError
from shared.logging import get_logger, set_metric_context
from shared.metrics import ExporterMetrics

from .worker import MetricWorker


class PollScheduler:
    """Starts a worker per metric on a fixed interval."""

    def __init__(
        self,
        worker: MetricWorker,
        metrics: Sequence[str],
        interval_seconds: int,
        exporter_metrics: Optional[ExporterMetrics] = None,
        fatal_fetch_errors: bool = False,
        skip_in_flight: bool = False,
    ):
        self.worker = worker
        self.metric_names = list(metrics)
        self.interval_seconds = interval_seconds
        self.exporter_metrics = exporter_metrics
        self.fatal_fetch_errors = fatal_fetch_errors
        self.skip_in_flight = skip_in_flight
        self.logger = get_logger("ga_exporter.scheduler")

        self.running = False
        self.ticks = 0
        self.last_tick: Optional[datetime] = None
        self.failures = 0
        self.fatal_error: Optional[BaseException] = None
        self.loop_task: Optional[asyncio.Task] = None

        self._tasks: Set[asyncio.Task] = set()
        self._in_flight: Counter = Counter()
        self._fatal_event = asyncio.Event()

    def tick(self) -> List[asyncio.Task]:
        """Start one worker task per configured metric."""
        self.ticks += 1
        self.last_tick = datetime.now()
        started = []

        for metric in self.metric_names:
            if self.skip_in_flight and self._in_flight[metric] > 0:
                self.logger.info("Previous run still in flight, skipping", metric=metric, tick=self.ticks)
                if self.exporter_metrics:
                    self.exporter_metrics.record_skipped_run(metric)
                continue

            # Counted here, not in the task, so a later tick sees it immediately
            self._in_flight[metric] += 1
            task = asyncio.create_task(self._run_worker(metric, self.ticks), name=f"ga-worker-{metric}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            # Runs even when the task is cancelled before its first step
            task.add_done_callback(partial(self._release, metric))
            started.append(task)

        return started

    async def run(self):
        """Poll until a fatal error occurs; the error is re-raised."""
        self.running = True
        self.logger.info(
            "Poll loop started",
            metrics=self.metric_names,
            interval_seconds=self.interval_seconds,
        )

        try:
            while True:
                self.tick()
                try:
                    await asyncio.wait_for(self._fatal_event.wait(), timeout=self.interval_seconds)
                except asyncio.TimeoutError:
                    continue
                raise self.fatal_error
        finally:
            self.running = False

    def start(self) -> asyncio.Task:
        """Start the poll loop as a background task."""
        if self.loop_task is None or self.loop_task.done():
            self.loop_task = asyncio.create_task(self.run(), name="ga-poll-loop")
        return self.loop_task

    async def stop(self):
        """Stop the poll loop and abandon in-flight workers."""
        pending = list(self._tasks)
        if self.loop_task is not None:
            pending.append(self.loop_task)

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        self.loop_task = None
        self.fatal_error = None
        self._in_flight.clear()
        self._fatal_event.clear()
        self.logger.info("Poll loop stopped", abandoned_workers=len(pending))

    def in_flight(self) -> Dict[str, int]:
        return {metric: count for metric, count in self._in_flight.items() if count > 0}

    def get_status(self) -> Dict[str, Any]:
        """Scheduler state for the health endpoint."""
        return {
            "running": self.running,
            "ticks": self.ticks,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            "interval_seconds": self.interval_seconds,
            "in_flight": self.in_flight(),
            "failures": self.failures,
            "fatal_error": str(self.fatal_error) if self.fatal_error else None,
        }

    async def _run_worker(self, metric: str, tick: int):
        set_metric_context(metric, tick)
        try:
            if self.exporter_metrics:
                with self.exporter_metrics.time_fetch(metric):
                    await self.worker.run(metric)
            else:
                await self.worker.run(metric)
        except RegistrationError as e:
            self._record_failure(metric)
            self._fail(e)
        except Exception as e:
            self._record_failure(metric)
            if self.fatal_fetch_errors:
                self._fail(e)
            else:
                self.logger.error("Worker run failed, skipping until next tick", error=str(e))
        else:
            if self.exporter_metrics:
                self.exporter_metrics.record_fetch(metric, "success")

    def _release(self, metric: str, task: asyncio.Task):
        if self._in_flight[metric] > 0:
            self._in_flight[metric] -= 1

    def _record_failure(self, metric: str):
        self.failures += 1
        if self.exporter_metrics:
            self.exporter_metrics.record_fetch(metric, "error")

    def _fail(self, error: BaseException):
        self.logger.critical("Fatal error in worker, stopping poll loop", error=str(error))
        if self.fatal_error is None:
            self.fatal_error = error
        self._fatal_event.set()
