"""
Tests for the report read view.
"""

from pathlib import Path
from typing import List, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from siteinspect.client.views import ReportReadView
from siteinspect.core.errors import APIError, NotFoundError
from siteinspect.models.reports import ReportKind, SoilReport


def soil(rid: str, soil_type: str, ph: float) -> SoilReport:
    return SoilReport(
        id=rid, soil_type=soil_type, moisture_content=40, ph_level=ph, compaction_level=100
    )


REPORTS = [soil("s1", "Clay", 7), soil("s2", "Sand", 9), soil("s3", "Loam", 5.5)]


class Notifications:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []

    def __call__(self, level: str, message: str) -> None:
        self.calls.append((level, message))


@pytest.fixture
def notify() -> Notifications:
    return Notifications()


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.list = AsyncMock(return_value=list(REPORTS))
    client.delete = AsyncMock(return_value="Report deleted successfully")
    return client


@pytest.fixture
def view(client: MagicMock, notify: Notifications) -> ReportReadView:
    return ReportReadView(client, ReportKind.SOIL, notify=notify)


@pytest.mark.asyncio
class TestRefresh:
    """Tests for loading reports."""

    async def test_refresh(self, view: ReportReadView, client: MagicMock) -> None:
        reports = await view.refresh()
        assert [r.id for r in reports] == ["s1", "s2", "s3"]
        client.list.assert_awaited_once_with(ReportKind.SOIL)

    async def test_refresh_failure_keeps_previous(
        self, view: ReportReadView, client: MagicMock, notify: Notifications
    ) -> None:
        await view.refresh()
        client.list.side_effect = APIError("down")

        reports = await view.refresh()

        assert len(reports) == 3
        assert notify.calls == [("error", "Error fetching soil reports.")]


@pytest.mark.asyncio
class TestFilterAndEvaluate:
    """Tests for local search and evaluation."""

    async def test_filtered(self, view: ReportReadView) -> None:
        await view.refresh()
        assert [r.id for r in view.filtered("ph level:9")] == ["s2"]
        assert [r.id for r in view.filtered("")] == ["s1", "s2", "s3"]
        assert view.filtered("gravel") == []

    async def test_evaluate(self, view: ReportReadView) -> None:
        await view.refresh()
        result = view.evaluate(view.reports[1])
        assert "pH level of 9 is alkaline (band 8-10)." in result.summary


@pytest.mark.asyncio
class TestExport:
    """Tests for PDF export from the view."""

    async def test_export_filtered(
        self, view: ReportReadView, notify: Notifications, tmp_path: Path
    ) -> None:
        await view.refresh()
        exporter = MagicMock()
        exporter.write.side_effect = lambda kind, reports, path: path
        view.exporter = exporter

        written = view.export_pdf("clay", tmp_path / "out.pdf")

        assert written == tmp_path / "out.pdf"
        kind, reports, _ = exporter.write.call_args.args
        assert kind == ReportKind.SOIL
        assert [r.id for r in reports] == ["s1"]
        assert notify.calls == [("success", "Exported out.pdf")]

    async def test_export_default_filename(
        self, view: ReportReadView, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        await view.refresh()

        written = view.export_pdf()

        assert written == Path("Filtered_Soil_Reports.pdf")
        assert (tmp_path / "Filtered_Soil_Reports.pdf").read_bytes().startswith(b"%PDF")

    async def test_export_failure(self, view: ReportReadView, notify: Notifications) -> None:
        exporter = MagicMock()
        exporter.write.side_effect = PermissionError("read-only")
        view.exporter = exporter

        assert view.export_pdf(path=Path("/nope/out.pdf")) is None
        assert notify.calls == [("error", "Failed to export the PDF.")]


@pytest.mark.asyncio
class TestDelete:
    """Tests for deleting from the view."""

    async def test_delete(
        self, view: ReportReadView, client: MagicMock, notify: Notifications
    ) -> None:
        await view.refresh()

        assert await view.delete("s2") is True

        client.delete.assert_awaited_once_with(ReportKind.SOIL, "s2")
        assert [r.id for r in view.reports] == ["s1", "s3"]
        assert notify.calls == [("success", "Report deleted successfully.")]

    async def test_delete_failure(
        self, view: ReportReadView, client: MagicMock, notify: Notifications
    ) -> None:
        await view.refresh()
        client.delete.side_effect = NotFoundError(report_id="s2")

        assert await view.delete("s2") is False

        assert len(view.reports) == 3
        assert notify.calls == [("error", "Failed to delete the report.")]


def test_default_notify_logs(caplog) -> None:
    view = ReportReadView(MagicMock(), ReportKind.SURVEYOR)
    with caplog.at_level("INFO", logger="siteinspect.client.views"):
        view.notify("error", "Failed to delete the report.")
    assert "Failed to delete the report." in caplog.text
