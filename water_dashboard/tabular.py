import asyncio
import logging
from typing import Optional

from .config import CSV_FILENAME, CSV_MIME
from .notify import DESTRUCTIVE, Notification, Notifier
from .report_store import FileSink
from .repository import SampleRepository
from .runs import CANCELLED, COMPLETED, DELIVERING, FAILED, SUBMITTING, ExportRun, RunLog

LOGGER = logging.getLogger(__name__)


class TabularExporter:
    """Raw CSV export: one request, one file. Needs nothing rendered."""

    def __init__(
        self,
        repository: SampleRepository,
        sink: FileSink,
        notifier: Notifier,
        run_log: Optional[RunLog] = None,
    ):
        self.repository = repository
        self.sink = sink
        self.notifier = notifier
        self.run_log = run_log or RunLog()

    async def export_csv(self, filename: str = CSV_FILENAME) -> ExportRun:
        run = self.run_log.start("csv", filename)
        self.notifier.notify(Notification("Exporting Data", "Preparing CSV file..."))
        try:
            self.run_log.enter(run, SUBMITTING)
            data = await self.repository.export_csv()
            self.run_log.enter(run, DELIVERING)
            path = await asyncio.to_thread(self.sink.deliver, filename, data, CSV_MIME)
        except asyncio.CancelledError:
            self.run_log.finish(run, CANCELLED)
            raise
        except Exception as exc:
            LOGGER.error("CSV export failed: %s", exc)
            self.notifier.notify(
                Notification("Export Failed", "Unable to export CSV data.", variant=DESTRUCTIVE)
            )
            return self.run_log.finish(run, FAILED, error=str(exc))

        self.notifier.notify(Notification("CSV Exported", "Your data has been saved as CSV."))
        return self.run_log.finish(run, COMPLETED, result_path=path)
