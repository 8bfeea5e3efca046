import asyncio
import logging

import streamlit as st

from water_dashboard.capture import FigureRegionCapture
from water_dashboard.composer import ReportComposer
from water_dashboard.config import PLOTLY_CONFIG, resolve_api_base
from water_dashboard.coordinator import DetailCoordinator, ResultsCoordinator, teardown_view
from water_dashboard.layout import render_sample_header, render_summary_cards, samples_frame
from water_dashboard.notify import DESTRUCTIVE, LoggingNotifier, Notification
from water_dashboard.report_store import DirectorySink
from water_dashboard.repository import HttpSampleRepository
from water_dashboard.tabular import TabularExporter

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Water Analysis Results", layout="wide")


class StreamlitNotifier(LoggingNotifier):
    """Log every notification and show it as a toast."""

    def notify(self, notification: Notification) -> None:
        super().notify(notification)
        icon = "⚠️" if notification.variant == DESTRUCTIVE else None
        st.toast(f"**{notification.title}**: {notification.description}", icon=icon)


def _services():
    if "services" not in st.session_state:
        notifier = StreamlitNotifier()
        repository = HttpSampleRepository(resolve_api_base())
        capture = FigureRegionCapture()
        sink = DirectorySink()
        st.session_state.services = {
            "notifier": notifier,
            "repository": repository,
            "capture": capture,
            "composer": ReportComposer(repository, capture, sink, notifier),
            "tabular": TabularExporter(repository, sink, notifier),
        }
    return st.session_state.services


def _offer_download(run, mime: str) -> None:
    if run is not None and run.ok and run.result_path:
        st.download_button(
            f"Save {run.filename}",
            data=run.result_path.read_bytes(),
            file_name=run.filename,
            mime=mime,
            key=f"download_{run.id}",
        )


def _open_sample(sample_id: str) -> None:
    # Leaving the results view: its next activation fetches again.
    teardown_view(st.session_state, "results")
    st.session_state.selected_sample = sample_id


def _close_sample() -> None:
    teardown_view(st.session_state, "detail")
    teardown_view(st.session_state, "results")
    st.session_state.selected_sample = None


def _page_results() -> None:
    services = _services()
    if "results" not in st.session_state:
        results = ResultsCoordinator(
            services["repository"],
            services["composer"],
            services["tabular"],
            services["capture"],
            services["notifier"],
        )
        with st.spinner("Loading results..."):
            asyncio.run(results.load())
        st.session_state.results = results
    results: ResultsCoordinator = st.session_state.results
    state = results.state

    render_summary_cards(state.total_samples, results.summary_cards())

    st.subheader("Analysis Results")
    st.caption("Select a sample to view its detailed report")
    rows = results.visible_rows()
    if state.samples_loading:
        st.caption("Loading samples...")
    elif not rows:
        st.info("No samples available.")
    else:
        st.dataframe(samples_frame(rows), hide_index=True, width="stretch")
    label = results.toggle_label()
    if label and st.button(label, key="results_toggle_rows"):
        results.toggle_show_all()
        st.rerun()
    if rows:
        picked = st.selectbox("Sample", [s.sample_id for s in rows], key="results_pick")
        st.button("Open detailed report", on_click=_open_sample, args=(picked,))

    figures = results.render_regions()
    left, right = st.columns(2)
    for col, region_id in zip((left, right), ("pollution-chart", "pie-chart")):
        if region_id in figures:
            col.plotly_chart(figures[region_id], config=PLOTLY_CONFIG)
    if "map-visual" in figures:
        st.plotly_chart(figures["map-visual"], config=PLOTLY_CONFIG)

    st.subheader("Export Results")
    pdf_col, csv_col = st.columns(2)
    if pdf_col.button("PDF Report", key="export_pdf"):
        st.session_state.last_pdf = asyncio.run(results.export_report())
    if csv_col.button("CSV Data", key="export_csv"):
        st.session_state.last_csv = asyncio.run(results.export_csv())
    _offer_download(st.session_state.get("last_pdf"), "application/pdf")
    _offer_download(st.session_state.get("last_csv"), "text/csv")


def _page_detail(sample_id: str) -> None:
    services = _services()
    st.button("← Back to Home", on_click=_close_sample)
    detail = st.session_state.get("detail")
    if detail is None or detail.state.sample_id != sample_id:
        teardown_view(st.session_state, "detail")
        detail = DetailCoordinator(
            sample_id,
            services["repository"],
            services["composer"],
            services["capture"],
            services["notifier"],
        )
        with st.spinner("Loading report..."):
            asyncio.run(detail.load())
        st.session_state.detail = detail

    sample = detail.state.sample
    if sample is None:
        st.info("Report unavailable.")
        return

    render_sample_header(sample)
    figures = detail.render_regions()
    left, right = st.columns(2)
    left.plotly_chart(figures["pollution-chart"], config=PLOTLY_CONFIG)
    right.plotly_chart(figures["pie-chart"], config=PLOTLY_CONFIG)
    st.plotly_chart(figures["index-chart"], config=PLOTLY_CONFIG)

    if st.button("Download PDF Report", key="export_sample_pdf"):
        st.session_state.last_sample_pdf = asyncio.run(detail.export_pdf())
    _offer_download(st.session_state.get("last_sample_pdf"), "application/pdf")


selected = st.session_state.get("selected_sample")
if selected:
    _page_detail(selected)
else:
    _page_results()
