"""
Water analysis dashboard core.

Fetches sample results from the analysis service, derives chart series,
captures rendered charts and drives the PDF/CSV export workflows.
"""

from .config import CATEGORY_COLORS, resolve_api_base, resolve_download_dir
from .context import ExportPayload, Sample, SampleDetail, Summary
from .errors import DashboardError, DataIntegrityError, MissingRegionError, NetworkError

__all__ = [
    "CATEGORY_COLORS",
    "DashboardError",
    "DataIntegrityError",
    "ExportPayload",
    "MissingRegionError",
    "NetworkError",
    "Sample",
    "SampleDetail",
    "Summary",
    "resolve_api_base",
    "resolve_download_dir",
]
