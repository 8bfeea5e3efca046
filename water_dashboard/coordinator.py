import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Mapping, MutableMapping, Optional, Set, TypeVar

import plotly.graph_objects as go

from . import charts
from .capture import FigureRegionCapture
from .config import (
    CATEGORY_COLORS,
    REGION_INDEX_CHART,
    REGION_MAP,
    REGION_PIE_CHART,
    REGION_POLLUTION_CHART,
)
from .composer import ReportComposer
from .context import CategorySummary, DetailState, ResultsState, Sample
from .errors import DashboardError
from .notify import DESTRUCTIVE, Notification, Notifier
from .ordering import toggle_label, visible_rows
from .repository import SampleRepository
from .runs import ExportRun
from .tabular import TabularExporter

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class ViewCoordinator:
    """
    Owns every task a view starts. close() is the teardown hook: pending
    fetches and exports are cancelled instead of outliving the view.
    """

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self.tasks: Set[asyncio.Task] = set()
        self.closed = False

    async def _spawn(self, coro: Awaitable[T]) -> T:
        if self.closed:
            if asyncio.iscoroutine(coro):
                coro.close()
            raise RuntimeError("View is closed")
        task = asyncio.ensure_future(coro)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return await task

    async def close(self) -> None:
        self.closed = True
        pending = [task for task in self.tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            LOGGER.info("Cancelled %d pending task(s) on view teardown", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)

    def _fetch_failed(self, title: str, description: str, exc: Exception) -> None:
        LOGGER.warning("%s: %s", title, exc)
        self.notifier.notify(Notification(title, description, variant=DESTRUCTIVE))


class ResultsCoordinator(ViewCoordinator):
    """Results page: samples table, summary cards, charts and exports."""

    def __init__(
        self,
        repository: SampleRepository,
        composer: ReportComposer,
        tabular: TabularExporter,
        capture: FigureRegionCapture,
        notifier: Notifier,
        colors: Mapping[str, str] = CATEGORY_COLORS,
    ):
        super().__init__(notifier)
        self.repository = repository
        self.composer = composer
        self.tabular = tabular
        self.capture = capture
        self.colors = dict(colors)
        self.state = ResultsState()

    async def load(self) -> ResultsState:
        # Independent fetches; each fills only its own part of the state.
        await asyncio.gather(
            self._spawn(self._load_samples()),
            self._spawn(self._load_summary()),
            self._spawn(self._load_pollution()),
        )
        return self.state

    async def _load_samples(self) -> None:
        try:
            self.state.samples = await self.repository.list_samples()
        except DashboardError as exc:
            self._fetch_failed("Sample fetch error", "Unable to load sample data.", exc)
        finally:
            self.state.samples_loading = False

    async def _load_summary(self) -> None:
        try:
            summary = await self.repository.get_summary()
            category_summary = charts.to_category_summary(summary.categories, self.colors)
        except DashboardError as exc:
            self._fetch_failed("Summary error", "Unable to load summary data.", exc)
            return
        self.state.category_summary = category_summary
        self.state.total_samples = summary.total_samples

    async def _load_pollution(self) -> None:
        try:
            aggregates = await self.repository.get_pollution_aggregates()
            self.state.pollution_series = charts.to_pollution_series(aggregates)
        except DashboardError as exc:
            self._fetch_failed("Chart data error", "Unable to load pollution indices.", exc)

    def visible_rows(self) -> List[Sample]:
        return visible_rows(self.state.samples, self.state.show_all)

    def toggle_show_all(self) -> bool:
        return self.state.toggle_show_all()

    def toggle_label(self) -> Optional[str]:
        return toggle_label(len(self.state.samples), self.state.show_all)

    def summary_cards(self) -> Optional[Dict[str, CategorySummary]]:
        return charts.summary_cards(self.state.category_summary)

    def render_regions(self) -> Dict[str, go.Figure]:
        """Build the page's figures and register them as capturable regions."""
        figures = {}
        if self.state.pollution_series:
            figures[REGION_POLLUTION_CHART] = charts.pollution_figure(self.state.pollution_series)
        if self.state.category_summary:
            figures[REGION_PIE_CHART] = charts.category_pie_figure(self.state.category_summary)
        if self.state.samples:
            figures[REGION_MAP] = charts.map_placeholder_figure(self.state.samples)
        for region_id in (REGION_POLLUTION_CHART, REGION_PIE_CHART, REGION_MAP):
            if region_id in figures:
                self.capture.register(region_id, figures[region_id])
            else:
                self.capture.unregister(region_id)
        return figures

    async def export_report(self) -> ExportRun:
        return await self._spawn(self.composer.export_overview(self.state.samples))

    async def export_csv(self) -> ExportRun:
        return await self._spawn(self.tabular.export_csv())


class DetailCoordinator(ViewCoordinator):
    """Single-sample page: detail charts and the per-sample PDF."""

    def __init__(
        self,
        sample_id: str,
        repository: SampleRepository,
        composer: ReportComposer,
        capture: FigureRegionCapture,
        notifier: Notifier,
    ):
        super().__init__(notifier)
        self.repository = repository
        self.composer = composer
        self.capture = capture
        self.state = DetailState(sample_id=sample_id)

    async def load(self) -> DetailState:
        await self._spawn(self._load_sample())
        return self.state

    async def _load_sample(self) -> None:
        try:
            self.state.sample = await self.repository.get_sample(self.state.sample_id)
        except DashboardError as exc:
            self._fetch_failed("Report error", f"Unable to load sample {self.state.sample_id}.", exc)
        finally:
            self.state.loading = False

    def series(self) -> Dict[str, List[Dict[str, Any]]]:
        sample = self.state.sample
        if sample is None:
            return {}
        return {
            "water_quality": charts.to_water_quality_series(sample.water_quality),
            "metals": charts.to_metal_series(sample.metals),
            "indices": charts.to_index_series(sample.indices.as_dict()),
        }

    def render_regions(self) -> Dict[str, go.Figure]:
        series = self.series()
        if not series:
            return {}
        figures = {
            REGION_POLLUTION_CHART: charts.water_quality_figure(series["water_quality"]),
            REGION_PIE_CHART: charts.metal_pie_figure(series["metals"]),
            REGION_INDEX_CHART: charts.index_figure(series["indices"]),
        }
        for region_id, fig in figures.items():
            self.capture.register(region_id, fig)
        return figures

    async def export_pdf(self) -> Optional[ExportRun]:
        if self.state.sample is None:
            return None
        return await self._spawn(self.composer.export_sample(self.state.sample))


def teardown_view(store: MutableMapping[str, Any], key: str) -> None:
    """
    Close and forget the coordinator held under ``key``. The next activation
    of that view builds a fresh coordinator and fetches again.
    """
    view = store.pop(key, None)
    if view is not None:
        asyncio.run(view.close())
