"""
Result model for derived report insights.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Evaluation(BaseModel):
    """
    Summary and suggestions derived from a report's field values.

    Attributes:
        summary: Statements describing the recorded values, in rule order
        suggestions: Advisory statements, in rule order
        indicators: Display color per field (e.g. ``{"phLevel": "#99ccff"}``)
    """

    model_config = ConfigDict(frozen=True)

    summary: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    indicators: Dict[str, str] = Field(default_factory=dict)
