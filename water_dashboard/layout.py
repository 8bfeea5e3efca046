from typing import Dict, Optional, Sequence

import pandas as pd
import streamlit as st

from .config import CATEGORIES, CATEGORY_LABELS
from .context import CategorySummary, Sample, SampleDetail

TABLE_COLUMNS = ["Sample ID", "Coordinates", "HPI", "MI", "Cd", "Status"]


def samples_frame(rows: Sequence[Sample]) -> pd.DataFrame:
    """Table rows in display order; row order is whatever the caller passes."""
    records = [
        {
            "Sample ID": s.sample_id,
            "Coordinates": s.coordinates_label,
            "HPI": s.indices.hpi,
            "MI": s.indices.mi,
            "Cd": s.indices.cd,
            "Status": s.category,
        }
        for s in rows
    ]
    return pd.DataFrame.from_records(records, columns=TABLE_COLUMNS)


def format_sampling_date(value: Optional[str]) -> str:
    if not value:
        return "Unknown"
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return str(value)
    return parsed.strftime("%d %b %Y")


def render_summary_cards(total: Optional[int], cards: Optional[Dict[str, CategorySummary]]) -> None:
    cols = st.columns(4)
    cols[0].metric("Total Samples", total if total is not None else "Loading...")
    if cards is None:
        cols[1].caption("Loading category summary...")
        return
    for col, category in zip(cols[1:], CATEGORIES):
        col.metric(CATEGORY_LABELS[category], cards[category].value)


def render_sample_header(sample: SampleDetail) -> None:
    st.subheader(f"Detailed Report: {sample.sample_id}")
    st.markdown(f"**Location:** {sample.location_label or 'Unknown'}")
    st.markdown(f"**Coordinates:** {sample.coordinates_label}")
    st.markdown(f"**Status:** `{sample.category}`")
    st.markdown(f"**Sampling Date:** {format_sampling_date(sample.sampling_date)}")
    st.markdown(f"**Well Type:** {sample.well_type or 'Unknown'}")
