import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

LOGGER = logging.getLogger(__name__)

# Export workflow states. Every run starts and ends in IDLE.
IDLE = "idle"
CAPTURING = "capturing"
SUBMITTING = "submitting"
DELIVERING = "delivering"

# Terminal outcomes.
COMPLETED = "completed"
FAILED = "failed"
CANCELLED = "cancelled"

# Finished runs kept for lookup; older ones are dropped as new runs start.
MAX_FINISHED_RUNS = 20


@dataclass
class ExportRun:
    id: str
    kind: str
    filename: str
    status: str = IDLE
    outcome: Optional[str] = None
    result_path: Optional[Path] = None
    error: Optional[str] = None
    history: List[str] = field(default_factory=lambda: [IDLE])

    @property
    def ok(self) -> bool:
        return self.outcome == COMPLETED


class RunLog:
    """
    Tracks export runs by id. Each trigger gets a fresh run, so overlapping
    exports never share payloads or files.
    """

    def __init__(self, max_finished: int = MAX_FINISHED_RUNS):
        self.runs: Dict[str, ExportRun] = {}
        self.max_finished = max_finished

    def start(self, kind: str, filename: str) -> ExportRun:
        run = ExportRun(id=uuid.uuid4().hex[:12], kind=kind, filename=filename)
        self.runs[run.id] = run
        self._prune()
        return run

    def _prune(self) -> None:
        # Oldest finished runs go first; runs still in flight are never dropped.
        finished = [run_id for run_id, run in self.runs.items() if run.outcome is not None]
        for run_id in finished[: max(0, len(finished) - self.max_finished)]:
            del self.runs[run_id]

    def enter(self, run: ExportRun, status: str) -> None:
        LOGGER.debug("Export %s (%s): %s -> %s", run.id, run.kind, run.status, status)
        run.status = status
        run.history.append(status)

    def finish(
        self,
        run: ExportRun,
        outcome: str,
        result_path: Optional[Path] = None,
        error: Optional[str] = None,
    ) -> ExportRun:
        run.outcome = outcome
        run.result_path = result_path
        run.error = error
        self.enter(run, IDLE)
        return run

    def get(self, run_id: str) -> Optional[ExportRun]:
        return self.runs.get(run_id)
