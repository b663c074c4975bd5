"""Report services."""

from .delivery import REPORT_COLUMNS, build_delivery_report, build_report_row, export_delivery_report

__all__ = ["REPORT_COLUMNS", "build_delivery_report", "build_report_row", "export_delivery_report"]
