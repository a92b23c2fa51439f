"""
Pydantic models for inspection reports.

Wire format uses camelCase keys (``soilType``, ``hazardousMaterials``) while
Python attributes are snake_case. Each report type has a ``*Fields`` model
holding the user-supplied values and a record model that adds the
store-assigned ``id``, the stored ``document`` path and, for surveyor reports,
``createdAt``.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Generic, NewType, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

# Opaque identifier assigned by the report store
ReportId = NewType("ReportId", str)


def _integral_as_int(value: float) -> Union[int, float]:
    return int(value) if value.is_integer() else value


# Whole numbers serialize without a fractional part: a pH entered as 9 reads back as 9
Measurement = Annotated[float, PlainSerializer(_integral_as_int)]


class ReportKind(str, Enum):
    """Report types; the value is the URL prefix (``/api/{value}-report``)."""

    SOIL = "soil"
    ENVIRONMENTAL = "environmental"
    SURVEYOR = "surveyor"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class SoilType(str, Enum):
    CLAY = "Clay"
    SILT = "Silt"
    SAND = "Sand"
    LOAM = "Loam"


class WaterQuality(str, Enum):
    CLEAN = "Clean"
    POLLUTED = "Polluted"
    CONTAMINATED = "Contaminated"


class Topography(str, Enum):
    FLAT = "Flat"
    HILLY = "Hilly"
    SLOPED = "Sloped"


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HazardousMaterials(CamelModel):
    """Hazard flags recorded on an environmental report."""

    model_config = ConfigDict(extra="forbid")

    chemicals: bool = False
    asbestos: bool = False
    lead: bool = False


class BoundaryDetails(CamelModel):
    """Boundary state recorded on a surveyor report."""

    model_config = ConfigDict(extra="forbid")

    clearly_marked: bool = False
    disputed: bool = False


class SoilReportFields(CamelModel):
    soil_type: SoilType = Field(..., description="Soil classification")
    moisture_content: Measurement = Field(
        ..., ge=0, le=100, description="Moisture content in percent"
    )
    ph_level: Measurement = Field(..., ge=0, le=14, description="Soil pH")
    compaction_level: Measurement = Field(..., ge=0, description="Compaction in psi")


class EnvironmentalReportFields(CamelModel):
    location: str = Field(..., min_length=1, description="Site location")
    temperature: str = Field(..., description="Temperature in degrees Celsius")
    air_quality_index: Measurement = Field(..., ge=0, description="Air quality index")
    water_quality: WaterQuality = Field(..., description="Water quality classification")
    hazardous_materials: HazardousMaterials = Field(default_factory=HazardousMaterials)

    @field_validator("location")
    @classmethod
    def strip_location(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Location must not be blank")
        return v

    @field_validator("temperature", mode="before")
    @classmethod
    def validate_temperature(cls, v: object) -> str:
        """Keep the temperature as submitted text, but require it to be numeric."""
        text = str(v).strip()
        try:
            float(text)
        except ValueError:
            raise ValueError("Temperature must be a number") from None
        return text


class SurveyorReportFields(CamelModel):
    land_area: Measurement = Field(..., ge=0, description="Land area in square meters")
    elevation: Measurement = Field(..., description="Elevation in meters")
    topography: Topography = Field(..., description="Surface classification")
    boundary_details: BoundaryDetails = Field(default_factory=BoundaryDetails)


class SoilReport(SoilReportFields):
    id: ReportId
    document: Optional[str] = None


class EnvironmentalReport(EnvironmentalReportFields):
    id: ReportId
    document: Optional[str] = None


class SurveyorReport(SurveyorReportFields):
    id: ReportId
    document: Optional[str] = None
    created_at: datetime


@dataclass(frozen=True)
class ReportSchema:
    """
    Per-type wiring used by the store, the API and the client.

    Attributes:
        kind: Report type
        fields_model: Model validating user-supplied values
        record_model: Model of a stored record
        nested_field: Wire name of the JSON-encoded sub-object, if any
    """

    kind: ReportKind
    fields_model: Type[CamelModel]
    record_model: Type[CamelModel]
    nested_field: Optional[str] = None

    @property
    def collection(self) -> str:
        return f"{self.kind.value}_reports"


REPORT_SCHEMAS = {
    ReportKind.SOIL: ReportSchema(
        kind=ReportKind.SOIL,
        fields_model=SoilReportFields,
        record_model=SoilReport,
    ),
    ReportKind.ENVIRONMENTAL: ReportSchema(
        kind=ReportKind.ENVIRONMENTAL,
        fields_model=EnvironmentalReportFields,
        record_model=EnvironmentalReport,
        nested_field="hazardousMaterials",
    ),
    ReportKind.SURVEYOR: ReportSchema(
        kind=ReportKind.SURVEYOR,
        fields_model=SurveyorReportFields,
        record_model=SurveyorReport,
        nested_field="boundaryDetails",
    ),
}


R = TypeVar("R", bound=CamelModel)


class ReportEnvelope(BaseModel, Generic[R]):
    """Response to a create or update: status message plus the stored record."""

    message: str
    report: R
