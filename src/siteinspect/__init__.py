"""
SiteInspect - field inspection reports for construction sites.

This package records soil, environmental and surveyor inspection reports
with document attachments, and derives summaries and suggestions from the
recorded field values.
"""

__version__ = "0.1.0"
