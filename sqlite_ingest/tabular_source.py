"""
Spreadsheet reading.

Decodes a workbook into ordered sheets of raw cell values. pandas does the
container work (openpyxl for xlsx, xlrd for xls); nothing here interprets
the cells.
"""

from pathlib import Path
from typing import Any, Iterator, List, Tuple

import pandas as pd

Row = List[Any]


def iter_sheets(file_path: Path) -> Iterator[Tuple[str, Iterator[Row]]]:
    """
    Yield ``(sheet_name, rows)`` for every sheet in workbook order.

    Rows are lists of raw cell values (text, number, boolean, datetime or
    NaN for an empty cell). No header detection happens here.
    """
    with pd.ExcelFile(file_path) as excel_file:
        for sheet_name in excel_file.sheet_names:
            df = pd.read_excel(excel_file, sheet_name=sheet_name, header=None, dtype=object)
            yield str(sheet_name), _iter_rows(df)


def _iter_rows(df: pd.DataFrame) -> Iterator[Row]:
    for row in df.itertuples(index=False, name=None):
        yield list(row)
