"""
Positional shape reconciliation between a data row and its key row.
"""

from typing import Any, List, Sequence


def normalize(row: Sequence[Any], key_columns: Sequence[Any]) -> List[Any]:
    """Pad with None or truncate so the row has one value per key column."""
    width = len(key_columns)
    values = list(row[:width])
    if len(values) < width:
        values.extend([None] * (width - len(values)))
    return values
