# Social Insights - engagement, activity and influence reports
from .reports import REPORTS, ReportConfig, ReportResult, build_report, run_report

__version__ = "0.1.0"

__all__ = ["REPORTS", "ReportConfig", "ReportResult", "build_report", "run_report"]
