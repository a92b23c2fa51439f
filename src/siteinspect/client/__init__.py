"""
Python client for the report API: HTTP client, forms and read views.
"""

from .api import ReportsClient, ReportsClientConfig
from .forms import EnvironmentalReportForm, ReportForm, SoilReportForm, SurveyorReportForm
from .views import ReportReadView

__all__ = [
    "EnvironmentalReportForm",
    "ReportForm",
    "ReportReadView",
    "ReportsClient",
    "ReportsClientConfig",
    "SoilReportForm",
    "SurveyorReportForm",
]
