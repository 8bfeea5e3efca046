import os
from pathlib import Path

# Remote analysis service. Override with WATER_API_BASE.
DEFAULT_API_BASE = "http://localhost:5000"
ENV_API_BASE = "WATER_API_BASE"

# Seconds. Exports are composed server-side and take longer than plain reads.
FETCH_TIMEOUT = 30
EXPORT_TIMEOUT = 60

# Pause before capturing so in-flight layout settles.
CAPTURE_SETTLE_DELAY = 0.3

COLLAPSED_ROW_LIMIT = 15

# Where delivered files land. Override with WATER_DOWNLOAD_DIR.
DEFAULT_DOWNLOAD_DIR = Path(__file__).resolve().parent.parent / "downloads"
ENV_DOWNLOAD_DIR = "WATER_DOWNLOAD_DIR"

REPORT_FILENAME = "Water_Analysis_Report.pdf"
CSV_FILENAME = "Water_Analysis_Data.csv"
SAMPLE_REPORT_TEMPLATE = "Sample_Report_{sample_id}.pdf"

PDF_MIME = "application/pdf"
CSV_MIME = "text/csv"

# Named regions captured into export requests.
REGION_POLLUTION_CHART = "pollution-chart"
REGION_PIE_CHART = "pie-chart"
REGION_MAP = "map-visual"
REGION_INDEX_CHART = "index-chart"

OVERVIEW_REGIONS = (REGION_POLLUTION_CHART, REGION_PIE_CHART, REGION_MAP)
SAMPLE_REGIONS = (REGION_POLLUTION_CHART, REGION_PIE_CHART, REGION_INDEX_CHART)

CATEGORIES = ("safe", "moderate", "unsafe")
CATEGORY_COLORS = {
    "safe": "#22c55e",
    "moderate": "#f59e0b",
    "unsafe": "#ef4444",
}
CATEGORY_LABELS = {
    "safe": "Safe Areas",
    "moderate": "Moderate Risk",
    "unsafe": "High Risk",
}

METAL_PALETTE = ("#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#AA336A")

# Shared Plotly defaults so charts look consistent on screen and in captures.
PLOTLY_CONFIG = {
    "displaylogo": False,
    "modeBarButtonsToRemove": [
        "lasso2d",
        "select2d",
        "autoScale2d",
        "resetScale2d",
        "toImage",
    ],
}


def resolve_api_base(default: str = DEFAULT_API_BASE) -> str:
    """Service base URL from env, without a trailing slash."""
    base = os.getenv(ENV_API_BASE, "").strip() or default
    return base.rstrip("/")


def resolve_download_dir(default: Path = DEFAULT_DOWNLOAD_DIR) -> Path:
    env_path = os.getenv(ENV_DOWNLOAD_DIR, "").strip()
    if env_path:
        return Path(env_path)
    return default
