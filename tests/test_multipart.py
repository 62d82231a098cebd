"""
Unit tests for multipart CSV extraction.
"""

import pytest

from app.vcms.modules.customer_import.client import encode_multipart_file
from app.vcms.modules.customer_import.errors import MalformedUpload, NotCsv
from app.vcms.modules.customer_import.parsers.multipart import extract_csv_upload

CSV = "Customer Name,Mother Code,Group\r\nAlice,,G1\r\nBob,M2,G2"


def _body(parts, boundary="XyZ"):
    out = ""
    for headers, content in parts:
        out += f"--{boundary}\r\n{headers}\r\n\r\n{content}\r\n"
    out += f"--{boundary}--\r\n"
    return out.encode("utf-8")


class TestExtractCsvUpload:
    """Tests for extract_csv_upload()"""

    def test_boundary_from_content_type(self):
        body = _body([('Content-Disposition: form-data; name="file"; filename="c.csv"\r\nContent-Type: text/csv', CSV)])
        upload = extract_csv_upload(body, "XyZ")
        assert upload.text == CSV
        assert upload.filename == "c.csv"
        assert upload.content_type == "text/csv"

    def test_boundary_inferred_from_first_line(self):
        body = _body([('Content-Disposition: form-data; name="file"; filename="c.csv"', CSV)])
        assert extract_csv_upload(body).text == CSV

    def test_quoted_boundary_parameter(self):
        body = _body([('Content-Disposition: form-data; name="file"; filename="c.csv"', CSV)])
        assert extract_csv_upload(body, '"XyZ"').text == CSV

    def test_first_file_part_wins(self):
        body = _body(
            [
                ('Content-Disposition: form-data; name="note"', "hello, world"),
                ('Content-Disposition: form-data; name="file"; filename="a.csv"', "a,b,c"),
                ('Content-Disposition: form-data; name="file2"; filename="b.csv"', "x,y,z"),
            ]
        )
        upload = extract_csv_upload(body, "XyZ")
        assert upload.filename == "a.csv"
        assert upload.text == "a,b,c"

    def test_part_without_filename_is_used_when_alone(self):
        body = _body([('Content-Disposition: form-data; name="file"', CSV)])
        assert extract_csv_upload(body).text == CSV

    def test_surrounding_whitespace_and_bom_are_stripped(self):
        body = _body([('Content-Disposition: form-data; name="file"; filename="c.csv"', "\ufeff  a,b,c\r\n\r\n")])
        assert extract_csv_upload(body).text == "a,b,c"

    def test_lf_only_line_endings(self):
        body = b'--XyZ\nContent-Disposition: form-data; name="file"; filename="c.csv"\n\na,b,c\n--XyZ--\n'
        assert extract_csv_upload(body).text == "a,b,c"

    def test_round_trip_with_client_encoder(self):
        body, content_type = encode_multipart_file("customers.csv", CSV.encode("utf-8"))
        boundary = content_type.split("boundary=", 1)[1]
        upload = extract_csv_upload(body, boundary)
        assert upload.filename == "customers.csv"
        assert upload.text == CSV

    def test_client_encoder_escapes_quotes_in_filename(self):
        body, content_type = encode_multipart_file('q"1".csv', CSV.encode("utf-8"))
        upload = extract_csv_upload(body, content_type.split("boundary=", 1)[1])
        assert upload.filename == "q%221%22.csv"
        assert upload.text == CSV


class TestExtractCsvUploadErrors:
    def test_no_boundary(self):
        with pytest.raises(MalformedUpload):
            extract_csv_upload(b"Customer Name,Mother Code,Group\r\nAlice,,G1")

    def test_empty_body(self):
        with pytest.raises(MalformedUpload):
            extract_csv_upload(b"")

    def test_truncated_part_without_closing_delimiter(self):
        body = b'--XyZ\r\nContent-Disposition: form-data; name="file"; filename="c.csv"\r\n\r\na,b,c\r\n'
        with pytest.raises(MalformedUpload):
            extract_csv_upload(body, "XyZ")

    def test_missing_blank_line_between_headers_and_body(self):
        body = b'--XyZ\r\nContent-Disposition: form-data; name="file"; filename="c.csv"\r\n--XyZ--\r\n'
        with pytest.raises(MalformedUpload):
            extract_csv_upload(body, "XyZ")

    def test_payload_without_comma(self):
        body = _body([('Content-Disposition: form-data; name="file"; filename="c.txt"', "just some text\r\nmore")])
        with pytest.raises(NotCsv) as exc:
            extract_csv_upload(body, "XyZ")
        assert exc.value.to_dict()["error"] == "Only CSV files are allowed"
