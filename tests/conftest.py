from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from water_dashboard.context import Sample, SampleDetail, Summary
from water_dashboard.errors import NetworkError


def sample_record(sample_id: str, category: str = "safe", hpi: float = 10.0) -> Dict[str, Any]:
    return {
        "sampleId": sample_id,
        "latitude": 28.6139,
        "longitude": 77.209,
        "indices": {"hpi": hpi, "mi": 1.5, "cd": 0.4},
        "category": category,
    }


def detail_record(sample_id: str = "WS-7") -> Dict[str, Any]:
    record = sample_record(sample_id, category="moderate")
    record.update(
        {
            "waterQuality": {"pH": 7.2, "TDS": 410, "Hardness": 180},
            "metals": {"Lead": 0, "Arsenic": 2.3, "Iron": 0.8},
            "village": "Rampur",
            "block": "Sadar",
            "district": "Varanasi",
            "state": "Uttar Pradesh",
            "samplingDate": "2024-03-15T00:00:00.000Z",
            "wellType": "Tube well",
        }
    )
    return record


class FakeRepository:
    """In-memory repository. Set ``fail`` to operation names that should raise."""

    def __init__(self, samples=None, summary=None, aggregates=None, detail=None):
        self.samples = samples if samples is not None else []
        self.summary = summary or {"categories": [], "totalSamples": 0}
        self.aggregates = aggregates if aggregates is not None else []
        self.detail = detail or detail_record()
        self.report_bytes = b"%PDF-1.7 overview"
        self.sample_report_bytes = b"%PDF-1.7 sample"
        self.csv_bytes = b"sampleId,category\nWS-1,safe\n"
        self.fail = set()
        self.calls: List[str] = []
        self.payloads: List[Dict[str, Any]] = []

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail:
            raise NetworkError(operation, "connection refused")

    async def list_samples(self):
        self._check("list samples")
        return [Sample.from_json(r) for r in self.samples]

    async def get_sample(self, sample_id):
        self._check("get sample")
        return SampleDetail.from_json(self.detail)

    async def get_summary(self):
        self._check("summary")
        return Summary.from_json(self.summary)

    async def get_pollution_aggregates(self):
        self._check("pollution aggregates")
        return list(self.aggregates)

    async def export_csv(self):
        self._check("export csv")
        return self.csv_bytes

    async def export_report(self, payload):
        self._check("export report")
        self.payloads.append(payload)
        return self.report_bytes

    async def export_sample_report(self, payload):
        self._check("export sample report")
        self.payloads.append(payload)
        return self.sample_report_bytes


class StaticCapture:
    """Returns a fixed image for known regions and None for the rest."""

    def __init__(self, available=(), raising=()):
        self.available = set(available)
        self.raising = set(raising)
        self.requested: List[str] = []

    async def capture(self, region_id: str) -> Optional[str]:
        self.requested.append(region_id)
        if region_id in self.raising:
            raise RuntimeError(f"renderer crashed on {region_id}")
        if region_id in self.available:
            return f"data:image/png;base64,{region_id}"
        return None


class RecordingSink:
    def __init__(self, root: Path):
        self.root = root
        self.delivered: List[tuple] = []

    def deliver(self, filename: str, data: bytes, mime_type: str) -> Path:
        self.delivered.append((filename, data, mime_type))
        return self.root / filename


class RecordingNotifier:
    def __init__(self):
        self.notifications = []

    def notify(self, notification) -> None:
        self.notifications.append(notification)

    @property
    def titles(self) -> List[str]:
        return [n.title for n in self.notifications]

    @property
    def failures(self):
        return [n for n in self.notifications if n.variant == "destructive"]


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def sink(tmp_path):
    return RecordingSink(tmp_path)
