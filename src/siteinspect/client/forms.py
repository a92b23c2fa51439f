"""
Report forms.

A form holds the values being entered for one report, possibly incomplete,
and submits them through ``ReportsClient``. Creating validates every field
locally before anything is sent; updating sends only the fields that are set.
"""

import logging
from typing import Any, Callable, ClassVar, Dict, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from siteinspect.client.api import DocumentInput, ReportsClient
from siteinspect.core.errors import (
    ConfigurationError,
    SiteInspectException,
    UpstreamError,
    validation_error_from_pydantic,
)
from siteinspect.integrations.weather import WeatherClient
from siteinspect.models.reports import (
    REPORT_SCHEMAS,
    BoundaryDetails,
    CamelModel,
    HazardousMaterials,
    ReportKind,
    SoilType,
    Topography,
    WaterQuality,
)

logger = logging.getLogger(__name__)

# notify(level, message); level is "success", "error" or "info"
Notify = Callable[[str, str], None]


class ReportForm(CamelModel):
    """Base form: shared payload building and submission."""

    kind: ClassVar[ReportKind]

    document: Optional[DocumentInput] = Field(None, exclude=True)

    @classmethod
    def from_report(cls, report: BaseModel) -> "ReportForm":
        """Pre-fill a form from a stored record for editing."""
        data = report.model_dump(by_alias=True, exclude={"id", "document", "created_at"})
        return cls.model_validate(data)

    def payload(self, partial: bool = False) -> Dict[str, Any]:
        """
        Collect the values to send, keyed by wire name.

        Raises:
            ValidationError: If ``partial`` is False and a field is missing
                or invalid
        """
        values = self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude_unset=partial
        )
        if partial:
            return values
        try:
            REPORT_SCHEMAS[self.kind].fields_model.model_validate(values)
        except PydanticValidationError as e:
            raise validation_error_from_pydantic(e) from e
        return values

    async def submit(
        self,
        client: ReportsClient,
        report_id: Optional[str] = None,
        notify: Optional[Notify] = None,
    ) -> Optional[BaseModel]:
        """
        Create the report, or update ``report_id`` when given.

        Without ``notify`` failures are raised. With it, the outcome is
        reported through the callback and None is returned on failure.
        """
        label = self.kind.label
        try:
            if report_id is None:
                record = await client.create(self.kind, self.payload(), self.document)
            else:
                record = await client.update(
                    self.kind, report_id, self.payload(partial=True), self.document
                )
        except SiteInspectException as e:
            logger.error(f"Error submitting {label} Report: {e}")
            if notify is None:
                raise
            notify("error", f"Failed to submit {label} Report")
            return None

        if notify is not None:
            notify("success", f"{label} Report {'Updated' if report_id else 'Submitted'}")
        return record


class SoilReportForm(ReportForm):
    kind: ClassVar[ReportKind] = ReportKind.SOIL

    soil_type: Optional[SoilType] = None
    moisture_content: Optional[float] = None
    ph_level: Optional[float] = None
    compaction_level: Optional[float] = None


class EnvironmentalReportForm(ReportForm):
    kind: ClassVar[ReportKind] = ReportKind.ENVIRONMENTAL

    location: Optional[str] = None
    temperature: Optional[str] = None
    air_quality_index: Optional[float] = None
    water_quality: Optional[WaterQuality] = None
    hazardous_materials: HazardousMaterials = Field(default_factory=HazardousMaterials)

    async def prefill_temperature(
        self,
        weather: WeatherClient,
        latitude: float,
        longitude: float,
        notify: Notify,
    ) -> Optional[str]:
        """
        Fill the temperature from the current weather at a location.

        On failure the temperature is left as it was and the failure is
        reported through ``notify``.

        Returns:
            The fetched temperature, or None if the lookup failed
        """
        try:
            temperature = await weather.current_temperature(latitude, longitude)
        except (UpstreamError, ConfigurationError) as e:
            logger.warning(f"Temperature lookup failed: {e}")
            notify("error", "Could not fetch the current temperature. Enter it manually.")
            return None

        self.temperature = temperature
        return temperature


class SurveyorReportForm(ReportForm):
    kind: ClassVar[ReportKind] = ReportKind.SURVEYOR

    land_area: Optional[float] = None
    elevation: Optional[float] = None
    topography: Optional[Topography] = None
    boundary_details: BoundaryDetails = Field(default_factory=BoundaryDetails)


FORMS = {
    ReportKind.SOIL: SoilReportForm,
    ReportKind.ENVIRONMENTAL: EnvironmentalReportForm,
    ReportKind.SURVEYOR: SurveyorReportForm,
}
