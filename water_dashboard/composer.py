import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence

from .capture import RegionCapture, capture_all
from .config import (
    CAPTURE_SETTLE_DELAY,
    EXPORT_TIMEOUT,
    OVERVIEW_REGIONS,
    PDF_MIME,
    REGION_INDEX_CHART,
    REGION_MAP,
    REGION_PIE_CHART,
    REGION_POLLUTION_CHART,
    REPORT_FILENAME,
    SAMPLE_REGIONS,
    SAMPLE_REPORT_TEMPLATE,
)
from .context import ExportPayload, Sample, SampleDetail
from .errors import NetworkError
from .notify import DESTRUCTIVE, Notification, Notifier
from .report_store import FileSink
from .repository import SampleRepository
from .runs import CANCELLED, CAPTURING, COMPLETED, DELIVERING, FAILED, SUBMITTING, ExportRun, RunLog

LOGGER = logging.getLogger(__name__)

# Region id -> key the compositor expects under "charts".
CHART_KEYS = {
    REGION_POLLUTION_CHART: "pollutionChart",
    REGION_PIE_CHART: "pieChart",
    REGION_MAP: "mapSnapshot",
    REGION_INDEX_CHART: "indexChart",
}


def build_payload(kind: str, records: Sequence[Mapping[str, Any]], images: Mapping[str, Optional[str]]) -> ExportPayload:
    charts = {CHART_KEYS[region_id]: image for region_id, image in images.items()}
    return ExportPayload(kind=kind, records=tuple(dict(r) for r in records), charts=charts)


def sample_report_filename(sample_id: str) -> str:
    return SAMPLE_REPORT_TEMPLATE.format(sample_id=sample_id)


class ReportComposer:
    """
    Capture -> payload -> submit -> deliver, strictly in that order.

    Captures may come back empty and the report still goes out. A failed or
    timed-out submission stops the run before anything is written and yields
    exactly one failure notification.
    """

    def __init__(
        self,
        repository: SampleRepository,
        capture: RegionCapture,
        sink: FileSink,
        notifier: Notifier,
        settle_delay: float = CAPTURE_SETTLE_DELAY,
        submit_timeout: float = EXPORT_TIMEOUT,
        run_log: Optional[RunLog] = None,
    ):
        self.repository = repository
        self.capture = capture
        self.sink = sink
        self.notifier = notifier
        self.settle_delay = settle_delay
        self.submit_timeout = submit_timeout
        self.run_log = run_log or RunLog()

    async def export_overview(self, samples: Sequence[Sample], filename: str = REPORT_FILENAME) -> ExportRun:
        return await self.compose_and_deliver(
            kind="overview",
            records=[s.raw for s in samples],
            regions=OVERVIEW_REGIONS,
            submit=self.repository.export_report,
            operation="export report",
            filename=filename,
            progress="Preparing your PDF report with charts and map...",
        )

    async def export_sample(self, sample: SampleDetail, filename: Optional[str] = None) -> ExportRun:
        return await self.compose_and_deliver(
            kind="sample",
            records=[sample.raw],
            regions=SAMPLE_REGIONS,
            submit=self.repository.export_sample_report,
            operation="export sample report",
            filename=filename or sample_report_filename(sample.sample_id),
            progress=f"Preparing the PDF report for sample {sample.sample_id}...",
        )

    async def compose_and_deliver(
        self,
        kind: str,
        records: Sequence[Mapping[str, Any]],
        regions: Sequence[str],
        submit: Callable[[Dict[str, Any]], Awaitable[bytes]],
        operation: str,
        filename: str,
        progress: str = "Preparing your PDF report...",
    ) -> ExportRun:
        run = self.run_log.start(kind, filename)
        self.run_log.enter(run, CAPTURING)
        self.notifier.notify(Notification("Generating Report", progress))
        try:
            images = await capture_all(self.capture, regions, self.settle_delay)
            payload = build_payload(kind, records, images)

            self.run_log.enter(run, SUBMITTING)
            try:
                data = await asyncio.wait_for(submit(payload.to_json()), timeout=self.submit_timeout)
            except asyncio.TimeoutError as exc:
                raise NetworkError(operation, f"timed out after {self.submit_timeout}s") from exc

            self.run_log.enter(run, DELIVERING)
            path = await asyncio.to_thread(self.sink.deliver, filename, data, PDF_MIME)
        except asyncio.CancelledError:
            LOGGER.info("Export %s cancelled during %s", run.id, run.status)
            self.run_log.finish(run, CANCELLED)
            raise
        except Exception as exc:
            LOGGER.error("Export %s (%s) failed during %s: %s", run.id, kind, run.status, exc)
            self.notifier.notify(
                Notification(
                    "Download Failed",
                    "Something went wrong while generating the report.",
                    variant=DESTRUCTIVE,
                )
            )
            return self.run_log.finish(run, FAILED, error=str(exc))

        self.notifier.notify(Notification("Report Ready", "Your PDF report has been downloaded."))
        return self.run_log.finish(run, COMPLETED, result_path=path)
