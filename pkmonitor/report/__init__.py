"""pkmonitor.report – PDF inspection report.

``build_report_data`` selects and summarises the samples of a PK range;
``build_report_pdf`` renders the result.  Rendering code holds no domain
logic.
"""

from .pdf_builder import build_report_pdf
from .report_data import AxisSummary, ReportData, build_report_data

__all__ = [
    "AxisSummary",
    "ReportData",
    "build_report_data",
    "build_report_pdf",
]
