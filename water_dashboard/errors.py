class DashboardError(Exception):
    """Base class for failures surfaced by the dashboard core."""


class NetworkError(DashboardError):
    """A request to the analysis service failed or timed out."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MissingRegionError(DashboardError):
    """A named render region is not available for capture."""

    def __init__(self, region_id: str):
        self.region_id = region_id
        super().__init__(f"Region not found: {region_id}")


class DataIntegrityError(DashboardError):
    """The service returned a shape or category the dashboard cannot use."""
