import re
from typing import List, Optional, Sequence

from .config import COLLAPSED_ROW_LIMIT
from .context import Sample

_NON_DIGITS = re.compile(r"\D")


def sample_sort_key(sample_id: str) -> int:
    """Numeric part of a sample id ("WS-012" -> 12). No digits sorts as 0."""
    digits = _NON_DIGITS.sub("", sample_id or "")
    return int(digits) if digits else 0


def order_samples(samples: Sequence[Sample]) -> List[Sample]:
    # sorted() is stable, so equal keys keep their input order.
    return sorted(samples, key=lambda s: sample_sort_key(s.sample_id))


def visible_rows(
    samples: Sequence[Sample],
    show_all: bool,
    limit: int = COLLAPSED_ROW_LIMIT,
) -> List[Sample]:
    """Rows for the results table: sort the full set first, then collapse."""
    ordered = order_samples(samples)
    if show_all:
        return ordered
    return ordered[:limit]


def toggle_label(total: int, show_all: bool, limit: int = COLLAPSED_ROW_LIMIT) -> Optional[str]:
    if total <= limit:
        return None
    return "Show Less" if show_all else f"Show All ({total})"
