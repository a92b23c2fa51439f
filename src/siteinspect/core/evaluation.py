"""
Derived insights for inspection reports.

Turns recorded field values into human-readable summary and suggestion
statements. Every rule is an independent threshold or equality check; rules
run in a fixed field order and their output is never sorted or deduplicated,
so the same report always yields the same statements in the same order.

Rule order per report type:
- Environmental: temperature, air quality, water quality, chemicals,
  asbestos, lead
- Soil: moisture content, pH level
- Surveyor: land area, elevation, topography, boundary
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple, Union

from siteinspect.models.evaluation import Evaluation
from siteinspect.models.reports import (
    EnvironmentalReportFields,
    SoilReportFields,
    SurveyorReportFields,
    Topography,
    WaterQuality,
)
from siteinspect.utils.formatting import format_number

AnyReport = Union[EnvironmentalReportFields, SoilReportFields, SurveyorReportFields]


@dataclass(frozen=True)
class EvaluationThresholds:
    """
    Fixed cut-off values used by the rules.

    All comparisons are strict (``>``/``<``) except the moisture and pH band
    upper bounds, which are inclusive.
    """

    temperature_high: float = 35.0
    temperature_low: float = 10.0
    air_quality_poor: float = 100.0
    moisture_low_max: float = 30.0
    moisture_optimal_max: float = 60.0
    land_area_large: float = 1000.0
    elevation_high: float = 100.0


THRESHOLDS = EvaluationThresholds()


class MoistureBand(str, Enum):
    """Soil moisture classification."""

    LOW = "low"  # <= 30%
    OPTIMAL = "optimal"  # 30-60%
    HIGH = "high"  # > 60%


class PhBand(str, Enum):
    """Soil pH classification."""

    STRONGLY_ACIDIC = "strongly acidic"  # < 3
    ACIDIC = "acidic"  # 3 to < 6
    NEUTRAL = "neutral"  # 6 to 8
    ALKALINE = "alkaline"  # > 8 to 10
    STRONGLY_ALKALINE = "strongly alkaline"  # > 10


MOISTURE_COLORS = {
    MoistureBand.LOW: "#ff6666",
    MoistureBand.OPTIMAL: "#99ff99",
    MoistureBand.HIGH: "#ffcc99",
}

MOISTURE_ADVICE = {
    MoistureBand.LOW: (
        "The moisture content is too low, which may make the soil less stable "
        "for construction without proper treatment."
    ),
    MoistureBand.OPTIMAL: (
        "The moisture content is optimal, making the soil suitable for "
        "construction with minimal adjustments."
    ),
    MoistureBand.HIGH: (
        "The moisture content is too high, which may lead to soil instability "
        "and require drainage solutions before construction."
    ),
}

PH_COLORS = {
    PhBand.STRONGLY_ACIDIC: "#ff6666",
    PhBand.ACIDIC: "#ffcc66",
    PhBand.NEUTRAL: "#99ff99",
    PhBand.ALKALINE: "#99ccff",
    PhBand.STRONGLY_ALKALINE: "#ccccff",
}

PH_RANGES = {
    PhBand.STRONGLY_ACIDIC: "0-3",
    PhBand.ACIDIC: "3-6",
    PhBand.NEUTRAL: "6-8",
    PhBand.ALKALINE: "8-10",
    PhBand.STRONGLY_ALKALINE: "10-14",
}


def classify_moisture(moisture_content: float) -> MoistureBand:
    if moisture_content <= THRESHOLDS.moisture_low_max:
        return MoistureBand.LOW
    if moisture_content <= THRESHOLDS.moisture_optimal_max:
        return MoistureBand.OPTIMAL
    return MoistureBand.HIGH


def classify_ph(ph_level: float) -> PhBand:
    """
    Place a pH value in one of five bands split at 3, 6, 8 and 10.

    3 and 6 open their bands (a pH of exactly 6 is neutral); 8 and 10 close
    theirs.
    """
    if ph_level < 3:
        return PhBand.STRONGLY_ACIDIC
    if ph_level < 6:
        return PhBand.ACIDIC
    if ph_level <= 8:
        return PhBand.NEUTRAL
    if ph_level <= 10:
        return PhBand.ALKALINE
    return PhBand.STRONGLY_ALKALINE


def _parse_temperature(temperature: str) -> Union[float, None]:
    try:
        return float(temperature)
    except (TypeError, ValueError):
        return None


def evaluate_environmental(report: EnvironmentalReportFields) -> Evaluation:
    summary: List[str] = []
    suggestions: List[str] = []

    # A blank or unreadable temperature compares false both ways
    temperature = _parse_temperature(report.temperature)
    if temperature is not None and temperature > THRESHOLDS.temperature_high:
        summary.append("High temperature detected.")
        suggestions.append("Ensure proper ventilation and cooling systems.")
    elif temperature is not None and temperature < THRESHOLDS.temperature_low:
        summary.append("Low temperature detected.")
        suggestions.append("Consider insulation to maintain warmth.")
    else:
        summary.append("Temperature is within a comfortable range.")

    if report.air_quality_index > THRESHOLDS.air_quality_poor:
        summary.append("Air quality is poor.")
        suggestions.append("Use air purifiers and wear masks.")
    else:
        summary.append("Air quality is acceptable.")

    if report.water_quality == WaterQuality.CONTAMINATED:
        summary.append("Water is contaminated.")
        suggestions.append("Use filtration or alternative sources for water.")
    elif report.water_quality == WaterQuality.POLLUTED:
        summary.append("Water quality is below ideal.")
        suggestions.append("Consider basic filtration methods.")
    else:
        summary.append("Water quality is clean.")

    hazards = report.hazardous_materials
    if hazards.chemicals:
        summary.append("Presence of chemical hazards.")
        suggestions.append("Use appropriate protective gear.")
    if hazards.asbestos:
        summary.append("Asbestos detected.")
        suggestions.append("Handle with extreme caution and use specialized removal services.")
    if hazards.lead:
        summary.append("Lead detected.")
        suggestions.append("Avoid direct contact and seek remediation services.")

    return Evaluation(summary=summary, suggestions=suggestions)


def evaluate_soil(report: SoilReportFields) -> Evaluation:
    moisture = classify_moisture(report.moisture_content)
    ph = classify_ph(report.ph_level)

    summary = [
        f"Moisture content of {format_number(report.moisture_content)}% is {moisture.value}.",
        f"pH level of {format_number(report.ph_level)} is {ph.value} "
        f"(band {PH_RANGES[ph]}).",
    ]
    suggestions = [MOISTURE_ADVICE[moisture]]
    indicators = {
        "moistureContent": MOISTURE_COLORS[moisture],
        "phLevel": PH_COLORS[ph],
    }
    return Evaluation(summary=summary, suggestions=suggestions, indicators=indicators)


def _surveyor_statements(report: SurveyorReportFields) -> List[Tuple[str, str]]:
    land_area = format_number(report.land_area)
    elevation = format_number(report.elevation)
    boundary = report.boundary_details

    return [
        (
            f"Land Area: {land_area} sq.m reflects the total surveyed area of the land.",
            "Good size for large development."
            if report.land_area > THRESHOLDS.land_area_large
            else "Small, may limit options.",
        ),
        (
            f"Elevation: {elevation} meters is the land's height above sea level.",
            "High elevation, could be challenging."
            if report.elevation > THRESHOLDS.elevation_high
            else "Low elevation, easy to build.",
        ),
        (
            f"Topography: The surface features are described as {report.topography.value}.",
            "Ideal for construction."
            if report.topography == Topography.FLAT
            else "Challenging terrain.",
        ),
        (
            "Boundary Details: "
            f"Clearly Marked: {'Yes' if boundary.clearly_marked else 'No'} | "
            f"Disputed: {'Yes' if boundary.disputed else 'No'}",
            "Clearly marked, good to go."
            if boundary.clearly_marked
            else "Disputed, needs resolution.",
        ),
    ]


def evaluate_surveyor(report: SurveyorReportFields) -> Evaluation:
    statements = _surveyor_statements(report)
    return Evaluation(
        summary=[description for description, _ in statements],
        suggestions=[verdict for _, verdict in statements],
    )


def evaluate(report: AnyReport) -> Evaluation:
    """
    Derive summary and suggestions for any report type.

    Args:
        report: Soil, environmental or surveyor report (fields or record)

    Returns:
        Evaluation with statements in rule order

    Raises:
        TypeError: If the report type is not recognized
    """
    if isinstance(report, EnvironmentalReportFields):
        return evaluate_environmental(report)
    if isinstance(report, SoilReportFields):
        return evaluate_soil(report)
    if isinstance(report, SurveyorReportFields):
        return evaluate_surveyor(report)
    raise TypeError(f"Cannot evaluate {type(report).__name__}")
