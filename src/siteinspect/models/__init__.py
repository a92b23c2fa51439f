"""
Data models and schemas.
"""

from .errors import ErrorDetail, ErrorResponse, MessageResponse
from .evaluation import Evaluation
from .reports import (
    REPORT_SCHEMAS,
    BoundaryDetails,
    EnvironmentalReport,
    EnvironmentalReportFields,
    HazardousMaterials,
    ReportEnvelope,
    ReportId,
    ReportKind,
    ReportSchema,
    SoilReport,
    SoilReportFields,
    SoilType,
    SurveyorReport,
    SurveyorReportFields,
    Topography,
    WaterQuality,
)

__all__ = [
    "BoundaryDetails",
    "EnvironmentalReport",
    "EnvironmentalReportFields",
    "ErrorDetail",
    "ErrorResponse",
    "Evaluation",
    "HazardousMaterials",
    "MessageResponse",
    "REPORT_SCHEMAS",
    "ReportEnvelope",
    "ReportId",
    "ReportKind",
    "ReportSchema",
    "SoilReport",
    "SoilReportFields",
    "SoilType",
    "SurveyorReport",
    "SurveyorReportFields",
    "Topography",
    "WaterQuality",
]
