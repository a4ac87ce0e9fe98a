"""
Custom exception types for KPI Lab.

Every exception carries a machine-readable code so callers can
handle specific failure modes programmatically.  Insufficient history
is not an error: the analytics engines return empty collections for it.
"""


class KpiLabError(Exception):
    """Base exception for all KPI Lab errors."""

    def __init__(self, message: str, code: str = "KPI_LAB_ERROR"):
        self.code = code
        super().__init__(message)


class SeriesAlignmentError(KpiLabError):
    """Raised when series that must share length and dates do not."""

    def __init__(self, message: str, kpi: str | None = None):
        self.kpi = kpi
        super().__init__(message, code="SERIES_ALIGNMENT_ERROR")


class AnalyticsNotReadyError(KpiLabError):
    """Raised when a consumer asks for results before an analysis exists."""

    def __init__(self, message: str = "No analysis has been run yet. Call generate() first."):
        super().__init__(message, code="ANALYTICS_NOT_READY")


class InsightGenerationError(KpiLabError):
    """Raised when the insight generator fails to produce text."""

    def __init__(self, message: str, backend: str = ""):
        self.backend = backend
        super().__init__(message, code="INSIGHT_GENERATION_ERROR")


class InsightBackendError(KpiLabError):
    """Raised when an insight backend is unknown or misconfigured."""

    def __init__(self, message: str, backend: str = ""):
        self.backend = backend
        super().__init__(message, code="INSIGHT_BACKEND_ERROR")
