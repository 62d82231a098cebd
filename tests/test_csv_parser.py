"""
Unit tests for the customer CSV tokenizer and header validation.
"""

import pytest

from app.vcms.modules.customer_import.errors import InvalidSchema, MalformedRow
from app.vcms.modules.customer_import.parsers.csv import (
    CsvTokenizer,
    parse_csv_line,
    parse_customer_csv,
    validate_header,
)


class TestParseCsvLine:
    """Tests for parse_csv_line()"""

    def test_comma_inside_quotes_does_not_split(self):
        assert parse_csv_line('Alice,"Jones, Jr.",G1') == ["Alice", "Jones, Jr.", "G1"]

    def test_doubled_quotes_are_literal(self):
        assert parse_csv_line('"Say ""hi""",M1,G1') == ['Say "hi"', "M1", "G1"]

    def test_fields_are_trimmed(self):
        assert parse_csv_line("  Alice , M1 ,  G1  ") == ["Alice", "M1", "G1"]
        assert parse_csv_line('"  Alice  ", "M1" ,G1') == ["Alice", "M1", "G1"]

    def test_empty_fields_keep_their_position(self):
        assert parse_csv_line("Alice,,G1") == ["Alice", "", "G1"]
        assert parse_csv_line(",,") == ["", "", ""]
        assert parse_csv_line("Bob,M2,") == ["Bob", "M2", ""]

    def test_empty_quoted_field(self):
        assert parse_csv_line('Alice,"",G1') == ["Alice", "", "G1"]

    def test_unterminated_quote_is_rejected(self):
        with pytest.raises(ValueError):
            parse_csv_line('Alice,"Jones, Jr.,G1')

    def test_quote_inside_bare_field_is_rejected(self):
        with pytest.raises(ValueError):
            parse_csv_line('Ali"ce,M1,G1')

    def test_text_after_closing_quote_is_rejected(self):
        with pytest.raises(ValueError):
            parse_csv_line('"Alice"x,M1,G1')


class TestCsvTokenizer:
    """Tests for CsvTokenizer"""

    def test_crlf_and_lf_line_endings(self):
        text = "a,b,c\r\nd,e,f\ng,h,i"
        assert list(CsvTokenizer(text)) == [["a", "b", "c"], ["d", "e", "f"], ["g", "h", "i"]]

    def test_blank_lines_yield_no_row(self):
        text = "a,b,c\n\n   \r\nd,e,f\n"
        assert list(CsvTokenizer(text)) == [["a", "b", "c"], ["d", "e", "f"]]

    def test_restartable(self):
        tok = CsvTokenizer("a,b,c\nd,e,f")
        assert list(tok) == list(tok)

    def test_lazy(self):
        tok = iter(CsvTokenizer('a,b,c\n"broken'))
        assert next(tok) == ["a", "b", "c"]
        with pytest.raises(MalformedRow) as exc:
            next(tok)
        assert "Line 2" in exc.value.details

    def test_numbered_rows_report_physical_lines(self):
        rows = list(CsvTokenizer("h1,h2,h3\n\nx,y,z").numbered_rows())
        assert rows == [(1, ["h1", "h2", "h3"]), (3, ["x", "y", "z"])]


class TestValidateHeader:
    """Tests for validate_header()"""

    def test_exact_header_passes(self):
        validate_header(["Customer Name", "Mother Code", "Group"])

    def test_reordered_header_fails(self):
        with pytest.raises(InvalidSchema):
            validate_header(["Mother Code", "Customer Name", "Group"])

    def test_missing_column_fails(self):
        with pytest.raises(InvalidSchema):
            validate_header(["Customer Name", "Group"])

    def test_extra_column_fails(self):
        with pytest.raises(InvalidSchema):
            validate_header(["Customer Name", "Mother Code", "Group", "Notes"])

    def test_case_sensitive(self):
        with pytest.raises(InvalidSchema):
            validate_header(["customer name", "Mother Code", "Group"])

    def test_header_through_tokenizer(self):
        header = next(iter(CsvTokenizer("Mother Code,Customer Name,Group\nx,y,z")))
        with pytest.raises(InvalidSchema):
            validate_header(header)


class TestParseCustomerCsv:
    """Tests for parse_customer_csv()"""

    def test_rows_are_keyed_by_header(self):
        text = 'Customer Name,Mother Code,Group\nAlice,,G1\n"Jones, Jr.",9000-000001,G2\n'
        assert parse_customer_csv(text) == [
            {"Customer Name": "Alice", "Mother Code": "", "Group": "G1"},
            {"Customer Name": "Jones, Jr.", "Mother Code": "9000-000001", "Group": "G2"},
        ]

    def test_quoted_header_is_accepted(self):
        text = '"Customer Name","Mother Code","Group"\r\nAlice,M1,G1'
        assert parse_customer_csv(text) == [{"Customer Name": "Alice", "Mother Code": "M1", "Group": "G1"}]

    def test_blank_name_rows_are_kept_for_the_executor(self):
        text = "Customer Name,Mother Code,Group\n,M1,G2\n"
        assert parse_customer_csv(text) == [{"Customer Name": "", "Mother Code": "M1", "Group": "G2"}]

    def test_header_only(self):
        assert parse_customer_csv("Customer Name,Mother Code,Group\n") == []

    def test_empty_text(self):
        with pytest.raises(InvalidSchema):
            parse_customer_csv("\n\n")

    def test_wrong_column_count_rejects_file(self):
        """Short rows are not shifted into other columns"""
        text = "Customer Name,Mother Code,Group\nAlice,G1\nBob,M2,G2\nCarol,M3,G3,extra\n"
        with pytest.raises(MalformedRow) as exc:
            parse_customer_csv(text)
        rows = exc.value.to_dict()["rows"]
        assert [r["row_number"] for r in rows] == [2, 4]

    def test_fields_longer_than_their_columns_are_rejected(self):
        text = (
            "Customer Name,Mother Code,Group\n"
            + "Alice," + "M" * 65 + ",G1\n"
            + "Bob,M2," + "G" * 128 + "\n"
            + "Carol,M3," + "G" * 129 + "\n"
        )
        with pytest.raises(MalformedRow) as exc:
            parse_customer_csv(text)
        assert exc.value.to_dict()["rows"] == [
            {"row_number": 2, "message": "Mother Code is longer than 64 characters."},
            {"row_number": 4, "message": "Group is longer than 128 characters."},
        ]
