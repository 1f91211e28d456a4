"""Output processors: tables, structured output and CSV reports."""

from .formatting import (
    format_bytes,
    format_output,
    format_tags,
    format_timestamp,
    render_csv,
    render_table,
)
from .report_generator import CSVReportGenerator

__all__ = [
    "CSVReportGenerator",
    "format_bytes",
    "format_output",
    "format_tags",
    "format_timestamp",
    "render_csv",
    "render_table",
]
