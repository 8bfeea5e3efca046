"""Tests for the chart series projections and figure builders."""

import copy

import pytest

from water_dashboard import charts
from water_dashboard.config import CATEGORY_COLORS
from water_dashboard.context import CategoryCount, CategorySummary
from water_dashboard.errors import DataIntegrityError


def test_pollution_series_maps_average_fields():
    aggregates = [{"_id": "SiteA", "avgHPI": 12.5, "avgMI": 3.1, "avgCD": 0.8}]
    assert charts.to_pollution_series(aggregates) == [{"name": "SiteA", "HPI": 12.5, "MI": 3.1, "Cd": 0.8}]


def test_pollution_series_keeps_input_order_and_inputs_untouched():
    aggregates = [
        {"_id": "Zeta", "avgHPI": 1, "avgMI": 2, "avgCD": 3},
        {"_id": "Alpha", "avgHPI": 4, "avgMI": 5, "avgCD": 6},
    ]
    before = copy.deepcopy(aggregates)
    series = charts.to_pollution_series(aggregates)
    assert [row["name"] for row in series] == ["Zeta", "Alpha"]
    assert aggregates == before


def test_pollution_series_rejects_non_numeric_average():
    with pytest.raises(DataIntegrityError):
        charts.to_pollution_series([{"_id": "SiteA", "avgHPI": "high", "avgMI": 1, "avgCD": 1}])


def test_category_summary_capitalizes_and_colors():
    counts = [CategoryCount("safe", 10), CategoryCount("moderate", 4), CategoryCount("unsafe", 2)]
    summary = charts.to_category_summary(counts)
    assert summary == [
        CategorySummary("Safe", 10, CATEGORY_COLORS["safe"]),
        CategorySummary("Moderate", 4, CATEGORY_COLORS["moderate"]),
        CategorySummary("Unsafe", 2, CATEGORY_COLORS["unsafe"]),
    ]


def test_category_summary_uses_injected_color_table():
    colors = {"safe": "green", "moderate": "amber", "unsafe": "red"}
    summary = charts.to_category_summary([CategoryCount("unsafe", 1)], colors)
    assert summary[0].color == "red"


def test_category_summary_unknown_category_is_an_integrity_error():
    with pytest.raises(DataIntegrityError, match="critical"):
        charts.to_category_summary([CategoryCount("safe", 1), CategoryCount("critical", 3)])


def test_summary_cards_counts_sum_to_total():
    counts = [CategoryCount("safe", 10), CategoryCount("moderate", 4), CategoryCount("unsafe", 2)]
    cards = charts.summary_cards(charts.to_category_summary(counts))
    assert [cards[c].value for c in ("safe", "moderate", "unsafe")] == [10, 4, 2]
    assert sum(card.value for card in cards.values()) == 16


def test_summary_cards_are_keyed_by_category_not_position():
    counts = [CategoryCount("unsafe", 2), CategoryCount("safe", 10), CategoryCount("moderate", 4)]
    cards = charts.summary_cards(charts.to_category_summary(counts))
    assert list(cards) == ["safe", "moderate", "unsafe"]
    assert cards["unsafe"].value == 2


@pytest.mark.parametrize("size", [0, 1, 2])
def test_summary_cards_incomplete_set_is_loading(size):
    counts = [CategoryCount(c, 1) for c in ("safe", "moderate", "unsafe")[:size]]
    assert charts.summary_cards(charts.to_category_summary(counts)) is None


def test_metal_series_drops_zero_concentrations():
    assert charts.to_metal_series({"Lead": 0, "Arsenic": 2.3}) == [{"name": "Arsenic", "value": 2.3}]


def test_metal_series_skips_unparsable_values():
    assert charts.to_metal_series({"Lead": None, "Iron": "0.5", "Zinc": "n/a"}) == [{"name": "Iron", "value": "0.5"}]


def test_water_quality_series_flattens_in_order():
    series = charts.to_water_quality_series({"pH": 7.2, "TDS": 410})
    assert series == [{"name": "pH", "value": 7.2}, {"name": "TDS", "value": 410}]


def test_index_series_upper_cases_names():
    series = charts.to_index_series({"hpi": 40.1, "mi": 1.2, "cd": 0.3})
    assert [row["name"] for row in series] == ["HPI", "MI", "CD"]


def test_pollution_figure_has_one_trace_per_index():
    fig = charts.pollution_figure([{"name": "SiteA", "HPI": 12.5, "MI": 3.1, "Cd": 0.8}])
    assert [trace.name for trace in fig.data] == ["HPI", "MI", "Cd"]
    assert fig.layout.title.text == "Pollution Indices Comparison"


def test_category_pie_figure_uses_summary_colors():
    summary = [CategorySummary("Safe", 3, "#00ff00"), CategorySummary("Unsafe", 1, "#ff0000")]
    fig = charts.category_pie_figure(summary)
    assert list(fig.data[0].marker.colors) == ["#00ff00", "#ff0000"]
    assert list(fig.data[0].values) == [3, 1]
