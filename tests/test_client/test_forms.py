"""
Tests for the report forms.
"""

from typing import List, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from siteinspect.client.forms import (
    EnvironmentalReportForm,
    SoilReportForm,
    SurveyorReportForm,
)
from siteinspect.core.errors import APIError, ConfigurationError, UpstreamError, ValidationError
from siteinspect.models.reports import ReportKind, SoilReport, SurveyorReport


class Notifications:
    """Collects notify(level, message) calls."""

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
    client.create = AsyncMock()
    client.update = AsyncMock()
    return client


class TestPayload:
    """Tests for payload building."""

    def test_complete_soil_form(self) -> None:
        form = SoilReportForm(soil_type="Clay", moisture_content=25, ph_level=9, compaction_level=120)
        assert form.payload() == {
            "soilType": "Clay",
            "moistureContent": 25.0,
            "phLevel": 9.0,
            "compactionLevel": 120.0,
        }

    def test_incomplete_form_rejected(self) -> None:
        form = SoilReportForm(soil_type="Clay", moisture_content=25)
        with pytest.raises(ValidationError) as exc_info:
            form.payload()
        assert exc_info.value.details["field"] == "phLevel"

    def test_partial_payload_only_set_fields(self) -> None:
        form = SoilReportForm(ph_level=6.5)
        assert form.payload(partial=True) == {"phLevel": 6.5}

    def test_document_never_in_payload(self) -> None:
        form = SurveyorReportForm(
            land_area=10, elevation=1, topography="Flat", document=("a.pdf", b"x")
        )
        payload = form.payload()
        assert "document" not in payload
        assert payload["boundaryDetails"] == {"clearlyMarked": False, "disputed": False}

    def test_from_report(self) -> None:
        report = SurveyorReport(
            id="v1",
            document="uploads/x.pdf",
            land_area=900,
            elevation=12,
            topography="Sloped",
            boundary_details={"clearly_marked": True, "disputed": False},
            created_at="2025-01-01T00:00:00Z",
        )
        form = SurveyorReportForm.from_report(report)
        assert form.land_area == 900
        assert form.boundary_details.clearly_marked is True
        assert form.document is None


@pytest.mark.asyncio
class TestSubmit:
    """Tests for form submission."""

    async def test_create(self, client: MagicMock, notify: Notifications) -> None:
        record = SoilReport(id="s1", soil_type="Clay", moisture_content=25, ph_level=9, compaction_level=1)
        client.create.return_value = record
        form = SoilReportForm(
            soil_type="Clay", moisture_content=25, ph_level=9, compaction_level=1,
            document=("core.jpg", b"jpeg"),
        )

        result = await form.submit(client, notify=notify)

        assert result is record
        kind, payload, document = client.create.await_args.args
        assert kind == ReportKind.SOIL
        assert payload["phLevel"] == 9
        assert document == ("core.jpg", b"jpeg")
        assert notify.calls == [("success", "Soil Report Submitted")]

    async def test_update_sends_partial(self, client: MagicMock, notify: Notifications) -> None:
        form = EnvironmentalReportForm(air_quality_index=80)

        await form.submit(client, report_id="e1", notify=notify)

        kind, report_id, payload, document = client.update.await_args.args
        assert kind == ReportKind.ENVIRONMENTAL
        assert report_id == "e1"
        assert payload == {"airQualityIndex": 80.0}
        assert document is None
        assert notify.calls == [("success", "Environmental Report Updated")]
        client.create.assert_not_awaited()

    async def test_failure_notifies(self, client: MagicMock, notify: Notifications) -> None:
        client.update.side_effect = APIError("boom")
        form = SurveyorReportForm(elevation=3)

        result = await form.submit(client, report_id="v1", notify=notify)

        assert result is None
        assert notify.calls == [("error", "Failed to submit Surveyor Report")]

    async def test_failure_raises_without_notify(self, client: MagicMock) -> None:
        form = SoilReportForm(soil_type="Clay")

        with pytest.raises(ValidationError):
            await form.submit(client)

        client.create.assert_not_awaited()


@pytest.mark.asyncio
class TestPrefillTemperature:
    """Tests for the weather-based temperature prefill."""

    async def test_success(self, notify: Notifications) -> None:
        weather = MagicMock()
        weather.current_temperature = AsyncMock(return_value="18.3")
        form = EnvironmentalReportForm(location="Dock")

        result = await form.prefill_temperature(weather, 40.7, -74.0, notify)

        assert result == "18.3"
        assert form.temperature == "18.3"
        weather.current_temperature.assert_awaited_once_with(40.7, -74.0)
        assert notify.calls == []
        assert form.payload(partial=True)["temperature"] == "18.3"

    @pytest.mark.parametrize(
        "error",
        [UpstreamError("down", service_name="openweathermap"), ConfigurationError("no key")],
    )
    async def test_failure_leaves_blank(self, notify: Notifications, error: Exception) -> None:
        weather = MagicMock()
        weather.current_temperature = AsyncMock(side_effect=error)
        form = EnvironmentalReportForm(location="Dock")

        result = await form.prefill_temperature(weather, 1.0, 2.0, notify)

        assert result is None
        assert form.temperature is None
        assert len(notify.calls) == 1
        assert notify.calls[0][0] == "error"
