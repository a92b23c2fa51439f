"""
Read view over the reports of one type.

Holds the last fetched list, filters it locally, derives evaluations and
exports the filtered rows to PDF. Failures never propagate out of the view;
they are reported through the ``notify`` callback.
"""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from siteinspect.client.api import ReportsClient
from siteinspect.client.forms import Notify
from siteinspect.core.errors import SiteInspectException
from siteinspect.core.evaluation import evaluate
from siteinspect.core.reports import ReportTableExporter, export_filename
from siteinspect.core.search import search_reports
from siteinspect.models.evaluation import Evaluation
from siteinspect.models.reports import ReportKind

logger = logging.getLogger(__name__)


def log_notification(level: str, message: str) -> None:
    """Default notify callback: write the message to the log."""
    logger.log(logging.ERROR if level == "error" else logging.INFO, message)


class ReportReadView:
    """
    List, search, evaluate, export and delete reports of one type.

    Attributes:
        kind: Report type shown by the view
        reports: Reports from the last successful refresh, in display order
    """

    def __init__(
        self,
        client: ReportsClient,
        kind: ReportKind,
        notify: Notify = log_notification,
        exporter: Optional[ReportTableExporter] = None,
    ) -> None:
        self.client = client
        self.kind = kind
        self.notify = notify
        self.exporter = exporter or ReportTableExporter()
        self.reports: List[BaseModel] = []

    async def refresh(self) -> List[BaseModel]:
        """Reload all reports; on failure the previous list is kept."""
        try:
            self.reports = await self.client.list(self.kind)
        except SiteInspectException as e:
            logger.error(f"Error fetching {self.kind.value} reports: {e}")
            self.notify("error", f"Error fetching {self.kind.value} reports.")
        return self.reports

    def filtered(self, query: str = "") -> List[BaseModel]:
        if not query:
            return list(self.reports)
        return search_reports(self.kind, self.reports, query)

    def evaluate(self, report: BaseModel) -> Evaluation:
        return evaluate(report)

    def export_pdf(self, query: str = "", path: Optional[Path] = None) -> Optional[Path]:
        """
        Export the reports matching ``query`` to a PDF table.

        Args:
            query: Search text; empty exports every loaded report
            path: Output file (defaults to ``Filtered_<Type>_Reports.pdf``)

        Returns:
            The written path, or None if writing failed
        """
        output_path = path or Path(export_filename(self.kind))
        try:
            written = self.exporter.write(self.kind, self.filtered(query), output_path)
        except OSError as e:
            logger.error(f"PDF export to {output_path} failed: {e}")
            self.notify("error", "Failed to export the PDF.")
            return None
        self.notify("success", f"Exported {written.name}")
        return written

    async def delete(self, report_id: str) -> bool:
        """
        Delete a report and drop it from the loaded list.

        Returns:
            True if the report was deleted
        """
        try:
            await self.client.delete(self.kind, report_id)
        except SiteInspectException as e:
            logger.error(f"Error deleting report {report_id}: {e}")
            self.notify("error", "Failed to delete the report.")
            return False

        self.reports = [report for report in self.reports if report.id != report_id]
        self.notify("success", "Report deleted successfully.")
        return True
