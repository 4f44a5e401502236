from .service import Report, ReportService

__all__ = [
    "Report",
    "ReportService",
]
