"""Push controller: periodic collect-and-export loop"""
import asyncio
import time
from typing import Optional
from .exporters.base import ExportResult, MetricExporter
from logging_config import get_logger, log_error


logger = get_logger(__name__)

DEFAULT_EXPORT_INTERVAL = 60.0


class PushController:
    """Collects a provider's meters every ``interval`` seconds and exports the checkpoint"""

    def __init__(self, provider, exporter: MetricExporter, interval: float = DEFAULT_EXPORT_INTERVAL):
        self._provider = provider
        self._exporter = exporter
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

        self.last_collection_time = 0.0
        self.collection_count = 0
        self.collection_errors = 0
        self.last_result: Optional[ExportResult] = None

    @property
    def exporter(self) -> MetricExporter:
        return self._exporter

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background loop"""
        if self._task is None:
            self._task = asyncio.create_task(self._collection_loop())
            logger.info("Push controller started", interval_seconds=self._interval,
                        exporter=type(self._exporter).__name__, event_type="controller_start")

    async def collect_and_export(self) -> ExportResult:
        """Run one collection cycle and hand the checkpoint to the exporter"""
        self.collection_count += 1
        records = await self._provider.collect()
        result = await self._exporter.export(records)
        self.last_result = result
        self.last_collection_time = time.time()
        if result is not ExportResult.SUCCESS:
            self.collection_errors += 1
            logger.warning("Export failed", result=result.value, records_count=len(records),
                           event_type="export_failed")
        return result

    async def shutdown(self) -> None:
        """Stop the loop, flush a final checkpoint and shut the exporter down"""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        try:
            await self.collect_and_export()
        except Exception as e:
            log_error(logger, e, {"component": "push_controller", "phase": "final_flush"})
            self.collection_errors += 1

        await self._exporter.shutdown()
        logger.info("Push controller shutdown", event_type="controller_shutdown")

    async def _collection_loop(self):
        """Background collect-and-export loop"""
        while True:
            try:
                await asyncio.sleep(self._interval)
                await self.collect_and_export()
            except asyncio.CancelledError:
                break
            except Exception as e:
                log_error(logger, e, {"component": "push_controller", "collection_errors": self.collection_errors})
                self.collection_errors += 1
