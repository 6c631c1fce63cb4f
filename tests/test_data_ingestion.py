"""
Unit tests for the leaf components: formats, coercion, delimiter
detection, row normalization and identifier sanitizing.
Run with: pytest tests/test_data_ingestion.py -v
"""

from datetime import date, datetime

import pandas as pd
import pytest

from sqlite_ingest.delimiter_detector import detect
from sqlite_ingest.identifiers import deduplicate, is_blank, sanitize, table_name
from sqlite_ingest.row_normalizer import normalize
from sqlite_ingest.supported_formats import FileFormat, Pipeline, SupportedFormats
from sqlite_ingest.value_coercion import coerce


class TestSupportedFormats:
    """Test the supported formats registry."""

    def test_csv_is_supported(self):
        assert SupportedFormats.is_supported('.csv')
        assert SupportedFormats.is_supported('csv')
        assert SupportedFormats.is_supported('.CSV')

    def test_xaf_is_supported(self):
        assert SupportedFormats.get_format('.xaf') == FileFormat.XAF
        assert SupportedFormats.get_pipeline(FileFormat.XAF) == Pipeline.AUDIT_XML

    def test_pipelines(self):
        assert SupportedFormats.get_pipeline(FileFormat.TXT) == Pipeline.DELIMITED
        assert SupportedFormats.get_pipeline(FileFormat.CSV) == Pipeline.DELIMITED
        assert SupportedFormats.get_pipeline(FileFormat.XLS) == Pipeline.SPREADSHEET
        assert SupportedFormats.get_pipeline(FileFormat.XLSX) == Pipeline.SPREADSHEET

    def test_unsupported_format(self):
        assert not SupportedFormats.is_supported('.json')
        assert SupportedFormats.get_format('.pdf') is None

    def test_get_supported_extensions(self):
        extensions = SupportedFormats.get_supported_extensions()
        assert sorted(extensions) == ['.csv', '.txt', '.xaf', '.xls', '.xlsx']


class TestValueCoercion:

    def test_null_like_values(self):
        assert coerce(None) is None
        assert coerce("") is None
        assert coerce([]) is None
        assert coerce(float('nan')) is None
        assert coerce(pd.NaT) is None

    def test_datetime_is_formatted(self):
        assert coerce(datetime(2024, 3, 5, 14, 7, 9)) == "2024-03-05 14:07:09"
        assert coerce(pd.Timestamp("2024-03-05 01:02:03")) == "2024-03-05 01:02:03"

    def test_date_gets_midnight(self):
        assert coerce(date(2024, 3, 5)) == "2024-03-05 00:00:00"

    def test_list_is_joined(self):
        assert coerce(["a", "b", "c"]) == "a b c"
        assert coerce(["a", "b"]) == coerce("a b")
        assert coerce([1, 2]) == "1 2"

    def test_list_of_empty_strings(self):
        assert coerce(["", ""]) == " "

    def test_plain_values(self):
        assert coerce("Ann") == "Ann"
        assert coerce(42) == "42"
        assert coerce(2.5) == "2.5"
        assert coerce(True) == "True"
        assert coerce("  ") == "  "


class TestDelimiterDetector:

    def test_comma(self):
        assert detect("id,name,city\n") == ","

    def test_semicolon(self):
        assert detect("id;name;city,state\n") == ";"

    def test_tab(self):
        assert detect("id\tname\tcity\n") == "\t"

    def test_pipe(self):
        assert detect("id|name|city\n") == "|"

    def test_tie_prefers_earlier_candidate(self):
        assert detect("a,b;c") == ","
        assert detect("a;b\tc") == ";"
        assert detect("a\tb|c") == "\t"

    def test_no_delimiter_defaults_to_comma(self):
        assert detect("single column\n") == ","


class TestRowNormalizer:

    def test_truncates_long_rows(self):
        assert normalize([1, 2, 3, 4, 5], ["a", "b", "c"]) == [1, 2, 3]

    def test_pads_short_rows(self):
        assert normalize(["v1"], ["a", "b", "c"]) == ["v1", None, None]

    def test_equal_length_unchanged(self):
        assert normalize(["x", "y"], ["a", "b"]) == ["x", "y"]

    @pytest.mark.parametrize("width", [0, 1, 4, 9])
    def test_length_always_matches(self, width):
        keys = [f"k{i}" for i in range(width)]
        for row in ([], [1], [1, 2, 3, 4, 5, 6]):
            assert len(normalize(row, keys)) == width


class TestIdentifiers:

    def test_sanitize_replaces_unsafe_characters(self):
        assert sanitize("Q1 Sales!") == "Q1_Sales_"
        assert sanitize("naam-klant") == "naam_klant"
        assert sanitize("ok_name_1") == "ok_name_1"

    def test_sanitize_is_idempotent(self):
        for label in ["Q1 Sales!", "a.b/c", "ümlaut", "already_safe"]:
            once = sanitize(label)
            assert sanitize(once) == once
            assert all(ch.isascii() and (ch.isalnum() or ch == '_') for ch in once)

    def test_table_name_with_prefix(self):
        assert table_name("Q1 Sales!") == "Q1_Sales_"
        assert table_name("Q1 Sales!", "import 2024") == "import_2024_Q1_Sales_"

    def test_is_blank(self):
        assert is_blank("")
        assert is_blank("_")
        assert is_blank("__")
        assert not is_blank("_a")

    def test_deduplicate_reserved_id(self):
        assert deduplicate(["id", "name"]) == ["id_2", "name"]

    def test_deduplicate_repeats(self):
        assert deduplicate(["a", "a", "A", "a_2"]) == ["a", "a_2", "A_3", "a_2_2"]
