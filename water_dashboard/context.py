from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .config import CATEGORIES
from .errors import DataIntegrityError


def _number(record: Mapping[str, Any], key: str, what: str) -> float:
    value = record.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DataIntegrityError(f"{what}: field '{key}' is not numeric ({value!r})")
    return float(value)


def _mapping(record: Mapping[str, Any], key: str, what: str) -> Dict[str, Any]:
    value = record.get(key) or {}
    if not isinstance(value, Mapping):
        raise DataIntegrityError(f"{what}: field '{key}' is not an object")
    return dict(value)


def check_category(category: Any) -> str:
    if category not in CATEGORIES:
        raise DataIntegrityError(f"Unknown category: {category!r}")
    return category


@dataclass(frozen=True)
class Indices:
    hpi: float
    mi: float
    cd: float

    @classmethod
    def from_json(cls, record: Mapping[str, Any], what: str = "indices") -> "Indices":
        values = {key: _number(record, key, what) for key in ("hpi", "mi", "cd")}
        negative = [key for key, value in values.items() if value < 0]
        if negative:
            raise DataIntegrityError(f"{what}: negative index values {negative}")
        return cls(**values)

    def as_dict(self) -> Dict[str, float]:
        return {"hpi": self.hpi, "mi": self.mi, "cd": self.cd}


@dataclass(frozen=True)
class Sample:
    """
    One water-source measurement as listed by the analysis service.
    ``raw`` keeps the record exactly as received so exports resend it untouched.
    """

    sample_id: str
    latitude: float
    longitude: float
    indices: Indices
    category: str
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def _common(cls, record: Any) -> Dict[str, Any]:
        if not isinstance(record, Mapping):
            raise DataIntegrityError(f"Sample record is not an object: {record!r}")
        sample_id = record.get("sampleId")
        if not isinstance(sample_id, str) or not sample_id:
            raise DataIntegrityError(f"Sample record without sampleId: {record!r}")
        what = f"sample {sample_id}"
        latitude = _number(record, "latitude", what)
        longitude = _number(record, "longitude", what)
        if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
            raise DataIntegrityError(f"{what}: coordinates out of range ({latitude}, {longitude})")
        indices = record.get("indices")
        if not isinstance(indices, Mapping):
            raise DataIntegrityError(f"{what}: missing indices")
        return {
            "sample_id": sample_id,
            "latitude": latitude,
            "longitude": longitude,
            "indices": Indices.from_json(indices, what),
            "category": check_category(record.get("category")),
            "raw": dict(record),
        }

    @classmethod
    def from_json(cls, record: Any) -> "Sample":
        return cls(**cls._common(record))

    @property
    def coordinates_label(self) -> str:
        return f"{self.latitude:.4f}, {self.longitude:.4f}"


@dataclass(frozen=True)
class SampleDetail(Sample):
    """Single-sample record with the measured parameters and site metadata."""

    water_quality: Dict[str, Any] = field(default_factory=dict)
    metals: Dict[str, Any] = field(default_factory=dict)
    village: str = ""
    block: str = ""
    district: str = ""
    state: str = ""
    sampling_date: Optional[str] = None
    well_type: str = ""

    @classmethod
    def from_json(cls, record: Any) -> "SampleDetail":
        common = cls._common(record)
        what = f"sample {common['sample_id']}"
        return cls(
            **common,
            water_quality=_mapping(record, "waterQuality", what),
            metals=_mapping(record, "metals", what),
            village=str(record.get("village") or ""),
            block=str(record.get("block") or ""),
            district=str(record.get("district") or ""),
            state=str(record.get("state") or ""),
            sampling_date=record.get("samplingDate"),
            well_type=str(record.get("wellType") or ""),
        )

    @property
    def location_label(self) -> str:
        parts = (self.village, self.block, self.district, self.state)
        return ", ".join(p for p in parts if p)


@dataclass(frozen=True)
class CategoryCount:
    category_id: str
    count: int


@dataclass(frozen=True)
class Summary:
    categories: Tuple[CategoryCount, ...]
    total_samples: int

    @classmethod
    def from_json(cls, body: Any) -> "Summary":
        if not isinstance(body, Mapping) or not isinstance(body.get("categories"), list):
            raise DataIntegrityError("Summary response has no categories list")
        total = body.get("totalSamples")
        if isinstance(total, bool) or not isinstance(total, int):
            raise DataIntegrityError(f"Summary totalSamples is not an integer ({total!r})")
        categories = []
        for entry in body["categories"]:
            if not isinstance(entry, Mapping) or not isinstance(entry.get("count"), int):
                raise DataIntegrityError(f"Malformed category entry: {entry!r}")
            categories.append(CategoryCount(category_id=entry.get("_id"), count=entry["count"]))
        return cls(categories=tuple(categories), total_samples=total)


@dataclass(frozen=True)
class CategorySummary:
    name: str
    value: int
    color: str


@dataclass(frozen=True)
class ExportPayload:
    """
    Request body for one export call. Built per run, never stored.
    ``charts`` maps the service's chart keys to PNG data URIs or None.
    """

    kind: str
    records: Tuple[Dict[str, Any], ...]
    charts: Dict[str, Optional[str]]

    def to_json(self) -> Dict[str, Any]:
        if self.kind == "sample":
            return {"sample": self.records[0], "charts": dict(self.charts)}
        return {"samples": list(self.records), "charts": dict(self.charts)}

    @property
    def missing_charts(self) -> Tuple[str, ...]:
        return tuple(key for key, image in self.charts.items() if image is None)


@dataclass
class ResultsState:
    """
    Explicit state for the results view. Each initial fetch writes only
    its own slice, so partial completion renders safely.
    """

    samples: List[Sample] = field(default_factory=list)
    samples_loading: bool = True
    pollution_series: List[Dict[str, Any]] = field(default_factory=list)
    category_summary: List[CategorySummary] = field(default_factory=list)
    total_samples: Optional[int] = None
    show_all: bool = False

    def toggle_show_all(self) -> bool:
        self.show_all = not self.show_all
        return self.show_all


@dataclass
class DetailState:
    sample_id: str
    sample: Optional[SampleDetail] = None
    loading: bool = True
