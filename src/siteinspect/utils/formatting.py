"""
Text rendering of recorded values.
"""

from enum import Enum
from typing import Any


def format_number(value: float) -> str:
    """
    Render a number the way it was entered on the form.

    Integral floats drop the trailing ``.0`` so that a pH of ``9.0`` reads
    ``"9"`` and a search for ``"0"`` does not match every whole number.

    Example:
        >>> format_number(9.0), format_number(7.25)
        ('9', '7.25')
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_value(value: Any) -> str:
    """Render any field value (number, enum, text, None) as display text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)
