import asyncio
import base64
import logging
from typing import Callable, Dict, Iterable, Optional, Protocol

import plotly.graph_objects as go
import plotly.io as pio

from .config import CAPTURE_SETTLE_DELAY
from .errors import MissingRegionError

LOGGER = logging.getLogger(__name__)

PNG_DATA_URI_PREFIX = "data:image/png;base64,"


class RegionCapture(Protocol):
    """Snapshot a named rendered region. A missing region yields None."""

    async def capture(self, region_id: str) -> Optional[str]: ...


def _apply_capture_layout(fig: go.Figure) -> go.Figure:
    fig.update_layout(
        font=dict(family="Helvetica", size=11, color="#1f2933"),
        paper_bgcolor="white",
        plot_bgcolor="white",
    )
    fig.update_xaxes(automargin=True)
    fig.update_yaxes(automargin=True)
    return fig


def fig_to_png_bytes(fig: go.Figure, width: int = 900, height: int = 500, scale: int = 2) -> bytes:
    """
    Render a figure to PNG through kaleido. A high-resolution render that
    fails is retried once at scale 1; the last error is raised.
    """
    # Work on a copy so the on-screen figure keeps its own styling.
    fig = _apply_capture_layout(go.Figure(fig))
    scales = [scale] if scale == 1 else [scale, 1]
    last_exc: Optional[Exception] = None
    for attempt_scale in scales:
        try:
            return pio.to_image(
                fig,
                format="png",
                width=width,
                height=height,
                scale=attempt_scale,
                engine="kaleido",
            )
        except Exception as exc:
            LOGGER.debug("PNG render at scale %s failed: %s", attempt_scale, exc)
            last_exc = exc
    raise last_exc


def to_data_uri(png: bytes) -> str:
    return PNG_DATA_URI_PREFIX + base64.b64encode(png).decode("ascii")


class FigureRegionCapture:
    """
    Region registry backed by Plotly figures. Views register the figures they
    draw under the region ids the export requests name.
    """

    def __init__(self, renderer: Callable[[go.Figure], bytes] = fig_to_png_bytes):
        self.renderer = renderer
        self.regions: Dict[str, go.Figure] = {}

    def register(self, region_id: str, fig: go.Figure) -> None:
        self.regions[region_id] = fig

    def unregister(self, region_id: str) -> None:
        self.regions.pop(region_id, None)

    def _lookup(self, region_id: str) -> go.Figure:
        fig = self.regions.get(region_id)
        if fig is None:
            raise MissingRegionError(region_id)
        return fig

    async def capture(self, region_id: str) -> Optional[str]:
        try:
            fig = self._lookup(region_id)
        except MissingRegionError as exc:
            LOGGER.info("%s; exporting without it", exc)
            return None
        try:
            png = await asyncio.to_thread(self.renderer, fig)
        except Exception as exc:
            LOGGER.warning("Capture of region %s failed: %s", region_id, exc)
            return None
        return to_data_uri(png)


async def _capture_one(capture: RegionCapture, region_id: str) -> Optional[str]:
    try:
        return await capture.capture(region_id)
    except Exception as exc:
        # Any capture failure degrades to a missing image.
        LOGGER.warning("Capture of region %s raised: %s", region_id, exc)
        return None


async def capture_all(
    capture: RegionCapture,
    region_ids: Iterable[str],
    settle_delay: float = CAPTURE_SETTLE_DELAY,
) -> Dict[str, Optional[str]]:
    """
    Wait for pending layout to settle, then capture every region. Each region
    is independent; the result has an entry (image or None) for every id.
    """
    region_ids = list(region_ids)
    if settle_delay > 0:
        await asyncio.sleep(settle_delay)
    images = await asyncio.gather(*(_capture_one(capture, rid) for rid in region_ids))
    captured = dict(zip(region_ids, images))
    missing = [rid for rid, image in captured.items() if image is None]
    if missing:
        LOGGER.info("Captured %d/%d regions (missing: %s)", len(region_ids) - len(missing), len(region_ids), ", ".join(missing))
    return captured
