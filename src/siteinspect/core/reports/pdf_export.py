"""
PDF export of filtered report lists.

Renders one titled table per export: a header row and one row per report,
with units appended to the numeric columns.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from pydantic import BaseModel
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from siteinspect.models.reports import ReportKind
from siteinspect.utils.formatting import format_value
from siteinspect.utils.logging import PerformanceTimer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportColumn:
    """One table column: header text, source attribute and display suffix."""

    header: str
    attribute: str
    suffix: str = ""

    def render(self, report: BaseModel) -> str:
        return f"{format_value(getattr(report, self.attribute))}{self.suffix}"


EXPORT_COLUMNS: Dict[ReportKind, Tuple[ExportColumn, ...]] = {
    ReportKind.SOIL: (
        ExportColumn("Soil Type", "soil_type"),
        ExportColumn("Moisture Content", "moisture_content", "%"),
        ExportColumn("pH Level", "ph_level"),
        ExportColumn("Compaction Level", "compaction_level", " psi"),
    ),
    ReportKind.ENVIRONMENTAL: (
        ExportColumn("Location", "location"),
        ExportColumn("Temperature (°C)", "temperature", "°C"),
        ExportColumn("AQI", "air_quality_index"),
        ExportColumn("Water Quality", "water_quality"),
    ),
    ReportKind.SURVEYOR: (
        ExportColumn("Land Area (sq.m)", "land_area", " sq.m"),
        ExportColumn("Elevation (m)", "elevation", " m"),
        ExportColumn("Topography", "topography"),
    ),
}


def export_title(kind: ReportKind) -> str:
    return f"Filtered {kind.label} Reports"


def export_filename(kind: ReportKind) -> str:
    return f"Filtered_{kind.label}_Reports.pdf"


def build_table_rows(kind: ReportKind, reports: Sequence[BaseModel]) -> List[List[str]]:
    """
    Build the table body, header row first.

    Example:
        >>> build_table_rows(ReportKind.SURVEYOR, [])
        [['Land Area (sq.m)', 'Elevation (m)', 'Topography']]
    """
    columns = EXPORT_COLUMNS[kind]
    rows = [[column.header for column in columns]]
    rows.extend([column.render(report) for column in columns] for report in reports)
    return rows


class ReportTableExporter:
    """
    Render report lists as a single-table PDF document.
    """

    def __init__(self, page_size: Tuple[float, float] = A4) -> None:
        self.page_size = page_size
        self.styles = getSampleStyleSheet()

    def _table(self, rows: List[List[str]]) -> Table:
        table = Table(rows, repeatRows=1)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#075e86')),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 11),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f2f2f2')]),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ]))
        return table

    def render(self, kind: ReportKind, reports: Sequence[BaseModel]) -> bytes:
        """
        Render reports of one type to PDF bytes.

        Args:
            kind: Report type, selecting the columns
            reports: Reports to list, in display order

        Returns:
            PDF document bytes
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.page_size,
            title=export_title(kind),
            rightMargin=0.75*inch,
            leftMargin=0.75*inch,
            topMargin=0.75*inch,
            bottomMargin=0.75*inch,
        )

        story: List[Any] = [
            Paragraph(export_title(kind), self.styles['Heading1']),
            Spacer(1, 0.2*inch),
            self._table(build_table_rows(kind, reports)),
        ]

        with PerformanceTimer(f"PDF export of {len(reports)} {kind.value} report(s)"):
            doc.build(story)

        return buffer.getvalue()

    def write(self, kind: ReportKind, reports: Sequence[BaseModel], output_path: Path) -> Path:
        """Render reports and save the PDF to ``output_path``."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.render(kind, reports))
        logger.info(f"PDF export written: {output_path}")
        return output_path
