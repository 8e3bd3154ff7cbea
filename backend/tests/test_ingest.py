"""Tests for CSV upload validation and parsing."""

import io

import pytest
from fastapi import UploadFile

from app.config import settings
from app.services.ingest import CSVParseError, parse_csv_rows, validate_upload


def make_upload(data: bytes, filename: str) -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=filename)


class TestValidateUpload:

    def test_accepts_csv(self):
        result = validate_upload(make_upload(b"id\n1\n", "data.csv"))
        assert result["valid"] is True
        assert result["file_type"] == "csv"
        assert result["file_size"] == 5

    def test_extension_is_case_insensitive(self):
        assert validate_upload(make_upload(b"id\n1\n", "DATA.CSV"))["valid"] is True

    def test_rejects_other_types(self):
        result = validate_upload(make_upload(b"{}", "data.json"))
        assert result["valid"] is False
        assert ".json" in result["error"]

    def test_rejects_large_files(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_MB", 0)
        result = validate_upload(make_upload(b"id\n1\n", "data.csv"))
        assert result["valid"] is False
        assert "too large" in result["error"]

    def test_rewinds_file(self):
        upload = make_upload(b"id\n1\n", "data.csv")
        validate_upload(upload)
        assert upload.file.read() == b"id\n1\n"


class TestParseCsvRows:

    def test_basic(self):
        rows = parse_csv_rows(b"id,name\n1,John\n2,\n")
        assert rows == [{"id": "1", "name": "John"}, {"id": "2", "name": ""}]

    def test_values_stay_text(self):
        rows = parse_csv_rows(b"id,code,flag\n007,NA,null\n")
        assert rows == [{"id": "007", "code": "NA", "flag": "null"}]

    def test_strips_headers_and_cells(self):
        rows = parse_csv_rows(b" id , name \n 1 , John \n")
        assert rows == [{"id": "1", "name": "John"}]

    def test_strips_bom(self):
        rows = parse_csv_rows(b"\xef\xbb\xbfid,name\n1,John\n")
        assert list(rows[0]) == ["id", "name"]

    def test_short_rows_are_padded(self):
        rows = parse_csv_rows(b"a,b\n1\n")
        assert rows == [{"a": "1", "b": ""}]

    def test_skips_blank_lines(self):
        rows = parse_csv_rows(b"id\n1\n\n2\n")
        assert [r["id"] for r in rows] == ["1", "2"]

    @pytest.mark.parametrize("data", [b"", b"   \n", b"id,name\n"])
    def test_empty_input(self, data):
        with pytest.raises(CSVParseError):
            parse_csv_rows(data)

    def test_not_utf8(self):
        with pytest.raises(CSVParseError):
            parse_csv_rows(b"id\n\xff\xfe\n")

    def test_error_is_value_error(self):
        assert issubclass(CSVParseError, ValueError)

    def test_long_rows_are_truncated(self):
        rows = parse_csv_rows(b"a,b\n1,2,3\n4,5\n")
        assert rows == [{"a": "1", "b": "2"}, {"a": "4", "b": "5"}]

    def test_first_row_with_extra_field_is_not_an_index(self):
        rows = parse_csv_rows(b"a,b\n1,2,3,4\n")
        assert rows == [{"a": "1", "b": "2"}]
