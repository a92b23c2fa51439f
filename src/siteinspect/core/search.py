"""
Free-text and field-specific report search.

A query such as ``"ph level:7"`` restricts matching to one field; any other
query is matched against the report type's default fields. Matching is a
case-insensitive substring test on the rendered field value.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple, TypeVar

from pydantic import BaseModel

from siteinspect.models.reports import ReportKind
from siteinspect.utils.formatting import format_value

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)


@dataclass(frozen=True)
class SearchFilter:
    """
    Search rules for one report type.

    Attributes:
        default_fields: Attributes matched when no prefix is present
        prefixes: ``(token, attribute)`` pairs in priority order; the first
            token found in the query wins
    """

    default_fields: Tuple[str, ...]
    prefixes: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def parse(self, query: str) -> Tuple[Tuple[str, ...], str]:
        """
        Split a query into the fields to search and the term to look for.

        The term is the text after the first occurrence of the prefix, up to
        any later occurrence of the same prefix.
        """
        value = query.lower()
        for token, attribute in self.prefixes:
            if token in value:
                term = value.split(token)[1].strip()
                return (attribute,), term
        return self.default_fields, value

    def matches(self, report: BaseModel, query: str) -> bool:
        fields, term = self.parse(query)
        return any(term in format_value(getattr(report, name)).lower() for name in fields)

    def apply(self, reports: Iterable[R], query: str) -> List[R]:
        """Return the reports matching ``query``, keeping their order."""
        matched = [report for report in reports if self.matches(report, query)]
        logger.debug(f"Search {query!r} matched {len(matched)} report(s)")
        return matched


SEARCH_FILTERS: Dict[ReportKind, SearchFilter] = {
    ReportKind.SOIL: SearchFilter(
        default_fields=("soil_type", "moisture_content", "ph_level", "compaction_level"),
        prefixes=(
            ("ph level:", "ph_level"),
            ("moisture content:", "moisture_content"),
            ("compaction:", "compaction_level"),
            ("soil type:", "soil_type"),
        ),
    ),
    ReportKind.ENVIRONMENTAL: SearchFilter(
        default_fields=("location", "temperature", "air_quality_index", "water_quality"),
    ),
    ReportKind.SURVEYOR: SearchFilter(
        default_fields=("land_area", "elevation", "topography"),
    ),
}


def search_reports(kind: ReportKind, reports: Sequence[R], query: str) -> List[R]:
    """
    Filter reports of one type by a free-text or field-specific query.

    Args:
        kind: Report type, selecting the search rules
        reports: Reports in display order
        query: Search text; empty matches everything

    Returns:
        Matching reports in their original order
    """
    return SEARCH_FILTERS[kind].apply(reports, query)
