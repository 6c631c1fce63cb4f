"""
Value Coercion

Every table the converter writes stores plain nullable text, so each raw
cell or element value passes through ``coerce`` on its way to the database.
"""

import math
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def coerce(value: Any) -> Optional[str]:
    """
    Convert a raw source value to its storage representation.

    Args:
        value: A cell value from a spreadsheet or delimited file, or the
            text (or list of texts) taken from an XML element.

    Returns:
        None for null, empty text, empty lists and pandas missing markers;
        a ``YYYY-MM-DD HH:MM:SS`` string for dates; otherwise plain text.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, (list, tuple)):
        return coerce(" ".join("" if item is None else str(item) for item in value))
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).strftime(TIMESTAMP_FORMAT)
    if isinstance(value, str):
        return value if value != "" else None
    return str(value)
