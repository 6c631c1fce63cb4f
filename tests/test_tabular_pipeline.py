"""
End-to-end tests for delimited text and spreadsheet ingestion.
"""

from datetime import datetime

import pandas as pd
import pytest

from database_builder import SQLiteSink
from sqlite_ingest.errors import StructuralError
from sqlite_ingest.tabular_pipeline import TabularPipeline
from tests.db_helpers import fetch_columns, fetch_rows


@pytest.fixture
def db_path(temp_dir):
    return temp_dir / "out.sqlite"


@pytest.fixture
def sink(db_path):
    sink = SQLiteSink(str(db_path))
    yield sink
    sink.close()


class TestDelimitedText:

    def test_two_line_csv(self, temp_dir, sink, db_path):
        csv_file = temp_dir / "people.csv"
        csv_file.write_text("id,name\n1,Ann\n")

        result = TabularPipeline(sink).ingest_delimited(csv_file)
        sink.close()

        assert result == {"people": 1}
        assert fetch_columns(db_path, "people") == [
            ("id", "INTEGER"), ("id_2", "TEXT"), ("name", "TEXT")
        ]
        assert fetch_rows(db_path, "people") == [(1, "1", "Ann")]

    def test_semicolon_file_with_prefix(self, temp_dir, sink, db_path):
        txt_file = temp_dir / "ledger export.txt"
        txt_file.write_text("code;amount;memo\nA1;10,50;first\nA2;3,00;\n")

        result = TabularPipeline(sink).ingest_delimited(txt_file, prefix="fy24")
        sink.close()

        assert result == {"fy24_ledger_export": 2}
        assert fetch_rows(db_path, "fy24_ledger_export") == [
            (1, "A1", "10,50", "first"),
            (2, "A2", "3,00", None),
        ]

    def test_irregular_rows_are_reconciled(self, temp_dir, sink, db_path):
        csv_file = temp_dir / "ragged.csv"
        csv_file.write_text("a,b,c\n1,2,3,4,5\n1\n\n7,8,9\n")

        TabularPipeline(sink).ingest_delimited(csv_file)
        sink.close()

        assert fetch_rows(db_path, "ragged") == [
            (1, "1", "2", "3"),
            (2, "1", None, None),
            (3, "7", "8", "9"),
        ]

    def test_utf16_with_bom(self, temp_dir, sink, db_path):
        txt_file = temp_dir / "export.txt"
        txt_file.write_bytes("naam\tstad\nJosé\tZürich\n".encode("utf-16"))

        TabularPipeline(sink).ingest_delimited(txt_file)
        sink.close()

        assert fetch_columns(db_path, "export")[1:] == [("naam", "TEXT"), ("stad", "TEXT")]
        assert fetch_rows(db_path, "export") == [(1, "José", "Zürich")]

    def test_header_labels_are_sanitized(self, temp_dir, sink, db_path):
        csv_file = temp_dir / "labels.csv"
        csv_file.write_text("Order No.,,unit price\nX,Y,Z\n")

        TabularPipeline(sink).ingest_delimited(csv_file)
        sink.close()

        assert [name for name, _ in fetch_columns(db_path, "labels")] == [
            "id", "Order_No_", "column_2", "unit_price"
        ]

    def test_quoted_fields(self, temp_dir, sink, db_path):
        csv_file = temp_dir / "quoted.csv"
        csv_file.write_text('name,note\n"Smith, J","said ""hi"""\n')

        TabularPipeline(sink).ingest_delimited(csv_file)
        sink.close()

        assert fetch_rows(db_path, "quoted") == [(1, "Smith, J", 'said "hi"')]

    def test_empty_file_is_structural_error(self, temp_dir, sink):
        csv_file = temp_dir / "empty.csv"
        csv_file.write_text("")

        with pytest.raises(StructuralError, match="No key row"):
            TabularPipeline(sink).ingest_delimited(csv_file)


class TestSpreadsheet:

    def _write_workbook(self, path, sheets):
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for name, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=name, header=False, index=False)

    def test_sheet_name_becomes_table(self, temp_dir, sink, db_path):
        workbook = temp_dir / "sales.xlsx"
        self._write_workbook(workbook, {
            "Q1 Sales!": [
                ["Amount", "Date"],
                [100, datetime(2024, 1, 15, 9, 30)],
                [250, datetime(2024, 2, 1)],
            ]
        })

        result = TabularPipeline(sink).ingest_spreadsheet(workbook)
        sink.close()

        assert result == {"Q1_Sales_": 2}
        assert fetch_columns(db_path, "Q1_Sales_") == [
            ("id", "INTEGER"), ("Amount", "TEXT"), ("Date", "TEXT")
        ]
        assert fetch_rows(db_path, "Q1_Sales_") == [
            (1, "100", "2024-01-15 09:30:00"),
            (2, "250", "2024-02-01 00:00:00"),
        ]

    def test_every_sheet_gets_a_table(self, temp_dir, sink, db_path):
        workbook = temp_dir / "book.xlsx"
        self._write_workbook(workbook, {
            "customers": [["name", "city"], ["Ann", "Utrecht"]],
            "products": [["sku"], ["P-1"], ["P-2"]],
        })

        result = TabularPipeline(sink).ingest_spreadsheet(workbook, prefix="src")
        sink.close()

        assert result == {"src_customers": 1, "src_products": 2}
        assert fetch_rows(db_path, "src_products") == [(1, "P-1"), (2, "P-2")]

    def test_key_row_skips_leading_rows(self, temp_dir, sink, db_path):
        workbook = temp_dir / "report.xlsx"
        self._write_workbook(workbook, {
            "report": [
                ["Quarterly report", None],
                ["code", "total"],
                ["A", 1],
                ["B", 2],
            ]
        })

        TabularPipeline(sink).ingest_spreadsheet(workbook, key_row=2)
        sink.close()

        assert fetch_columns(db_path, "report")[1:] == [("code", "TEXT"), ("total", "TEXT")]
        assert fetch_rows(db_path, "report") == [(1, "A", "1"), (2, "B", "2")]

    def test_empty_header_cells_are_dropped(self, temp_dir, sink, db_path):
        workbook = temp_dir / "gaps.xlsx"
        self._write_workbook(workbook, {
            "gaps": [
                ["first", "?", "second", None],
                ["a", "b", "c", "d"],
            ]
        })

        TabularPipeline(sink).ingest_spreadsheet(workbook)
        sink.close()

        assert [name for name, _ in fetch_columns(db_path, "gaps")] == ["id", "first", "second"]
        # positional alignment: the row is truncated to the column count
        assert fetch_rows(db_path, "gaps") == [(1, "a", "b")]

    def test_sheet_shorter_than_key_row_is_skipped(self, temp_dir, sink):
        workbook = temp_dir / "short.xlsx"
        self._write_workbook(workbook, {
            "tiny": [["only"]],
            "full": [["x"], ["skip"], ["v"]],
        })

        result = TabularPipeline(sink).ingest_spreadsheet(workbook, key_row=2)

        assert result == {"full": 1}
