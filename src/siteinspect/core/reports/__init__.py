"""
PDF export of report lists.
"""

from siteinspect.core.reports.pdf_export import (
    EXPORT_COLUMNS,
    ReportTableExporter,
    build_table_rows,
    export_filename,
    export_title,
)

__all__ = [
    "EXPORT_COLUMNS",
    "ReportTableExporter",
    "build_table_rows",
    "export_filename",
    "export_title",
]
