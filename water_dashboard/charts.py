from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import plotly.graph_objects as go

from .config import CATEGORIES, CATEGORY_COLORS, METAL_PALETTE
from .context import CategoryCount, CategorySummary
from .errors import DataIntegrityError

# ---------------------------------------------------------------------------
# Series projections. None of these mutate their inputs; output order is
# input iteration order.
# ---------------------------------------------------------------------------


def _metric(record: Mapping[str, Any], key: str) -> float:
    value = record.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DataIntegrityError(f"Aggregate {record.get('_id')!r}: '{key}' is not numeric")
    return value


def to_pollution_series(aggregates: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Per-site averages from the service -> bar chart rows {name, HPI, MI, Cd}."""
    series = []
    for record in aggregates:
        if not isinstance(record, Mapping) or "_id" not in record:
            raise DataIntegrityError(f"Malformed pollution aggregate: {record!r}")
        series.append(
            {
                "name": record["_id"],
                "HPI": _metric(record, "avgHPI"),
                "MI": _metric(record, "avgMI"),
                "Cd": _metric(record, "avgCD"),
            }
        )
    return series


def to_category_summary(
    categories: Iterable[CategoryCount],
    colors: Mapping[str, str] = CATEGORY_COLORS,
) -> List[CategorySummary]:
    summary = []
    for entry in categories:
        color = colors.get(entry.category_id) if isinstance(entry.category_id, str) else None
        if color is None:
            raise DataIntegrityError(f"Unknown category in summary: {entry.category_id!r}")
        summary.append(
            CategorySummary(
                name=entry.category_id.capitalize(),
                value=entry.count,
                color=color,
            )
        )
    return summary


def summary_cards(summary: Sequence[CategorySummary]) -> Optional[Dict[str, CategorySummary]]:
    """
    Counts keyed by category for the summary cards. Anything other than one
    entry per category is still loading, so return None rather than guess.
    """
    if len(summary) != len(CATEGORIES):
        return None
    by_category = {entry.name.lower(): entry for entry in summary}
    if set(by_category) != set(CATEGORIES):
        return None
    return {category: by_category[category] for category in CATEGORIES}


def _flatten(mapping: Mapping[str, Any]) -> List[Dict[str, Any]]:
    return [{"name": key, "value": value} for key, value in mapping.items()]


def to_water_quality_series(water_quality: Mapping[str, Any]) -> List[Dict[str, Any]]:
    return _flatten(water_quality)


def to_metal_series(metals: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Heavy-metal pie slices; zero (or unparsable) concentrations are left out."""
    series = []
    for entry in _flatten(metals):
        try:
            if float(entry["value"]) > 0:
                series.append(entry)
        except (TypeError, ValueError):
            continue
    return series


def to_index_series(indices: Mapping[str, Any]) -> List[Dict[str, Any]]:
    return [{"name": key.upper(), "value": value} for key, value in indices.items()]


# ---------------------------------------------------------------------------
# Figures. These are the rendered regions the capture layer snapshots.
# ---------------------------------------------------------------------------


def apply_layout(fig: go.Figure, height: int = 320, showlegend: bool = False, title: str = "") -> go.Figure:
    """Centralize layout tweaks so on-screen charts and captures match."""
    fig.update_layout(
        title=title or None,
        height=height,
        margin=dict(l=24, r=24, t=48 if title else 24, b=24),
        showlegend=showlegend,
        template="plotly_white",
        paper_bgcolor="white",
        plot_bgcolor="white",
        font=dict(color="#1f2933"),
    )
    return fig


def pollution_figure(series: Sequence[Mapping[str, Any]]) -> go.Figure:
    names = [row["name"] for row in series]
    fig = go.Figure()
    for metric, color in (("HPI", "#1e90ff"), ("MI", "#00b4a0"), ("Cd", "#94a3b8")):
        fig.add_trace(go.Bar(name=metric, x=names, y=[row[metric] for row in series], marker_color=color))
    fig.update_layout(barmode="group")
    return apply_layout(fig, height=300, showlegend=True, title="Pollution Indices Comparison")


def category_pie_figure(summary: Sequence[CategorySummary]) -> go.Figure:
    fig = go.Figure(
        go.Pie(
            labels=[entry.name for entry in summary],
            values=[entry.value for entry in summary],
            marker=dict(colors=[entry.color for entry in summary]),
            textinfo="label+percent",
            sort=False,
        )
    )
    return apply_layout(fig, height=300, title="Contamination Distribution")


def map_placeholder_figure(samples: Sequence[Any]) -> go.Figure:
    """
    Stand-in for the map panel: sample locations colored by category on a
    plain lat/lon scatter. No tiles or projection.
    """
    fig = go.Figure()
    for category in CATEGORIES:
        rows = [s for s in samples if s.category == category]
        fig.add_trace(
            go.Scatter(
                name=category.capitalize(),
                x=[s.longitude for s in rows],
                y=[s.latitude for s in rows],
                text=[s.sample_id for s in rows],
                mode="markers",
                marker=dict(color=CATEGORY_COLORS[category], size=9),
            )
        )
    fig.update_xaxes(title="Longitude")
    fig.update_yaxes(title="Latitude")
    return apply_layout(fig, height=380, showlegend=True, title="Geospatial Visualization")


def _value_bar(series: Sequence[Mapping[str, Any]], color: str, title: str) -> go.Figure:
    fig = go.Figure(
        go.Bar(
            x=[row["name"] for row in series],
            y=[row["value"] for row in series],
            marker_color=color,
        )
    )
    return apply_layout(fig, height=250, title=title)


def water_quality_figure(series: Sequence[Mapping[str, Any]]) -> go.Figure:
    return _value_bar(series, "#8884d8", "Water Quality Parameters")


def index_figure(series: Sequence[Mapping[str, Any]]) -> go.Figure:
    return _value_bar(series, "#82ca9d", "Indices")


def metal_pie_figure(series: Sequence[Mapping[str, Any]]) -> go.Figure:
    colors = [METAL_PALETTE[i % len(METAL_PALETTE)] for i in range(len(series))]
    fig = go.Figure(
        go.Pie(
            labels=[row["name"] for row in series],
            values=[row["value"] for row in series],
            marker=dict(colors=colors),
            sort=False,
        )
    )
    return apply_layout(fig, height=250, title="Heavy Metals")
