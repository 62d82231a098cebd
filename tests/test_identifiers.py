"""
Unit tests for customer identifier allocation.

Tests cover:
- Increment by exactly one with zero padding
- Carry across the dash position
- The empty-storage sentinel
- Overflow and malformed input
"""

import pytest

from app.vcms.modules.customer_import.errors import IdentifierOverflow, InvalidIdentifier
from app.vcms.modules.customer_import.utils import (
    EMPTY_STORAGE_IDENTIFIER,
    allocate,
    format_identifier,
    validate_identifier,
)


class TestAllocate:
    """Tests for allocate()"""

    def test_increments_by_one(self):
        assert allocate("9000-000001") == "9000-000002"
        assert allocate("9000-000041") == "9000-000042"

    def test_empty_storage_sentinel(self):
        """First identifier when the table is empty"""
        assert EMPTY_STORAGE_IDENTIFIER == "9000-000000"
        assert allocate(EMPTY_STORAGE_IDENTIFIER) == "9000-000001"

    def test_carries_into_prefix(self):
        """The dash is display only; the number is 10 digits wide"""
        assert allocate("9000-999999") == "9001-000000"
        assert allocate("0000-999999") == "0001-000000"

    def test_keeps_zero_padding(self):
        assert allocate("0000-000000") == "0000-000001"
        assert allocate("0009-000099") == "0009-000100"

    def test_chained_allocation_is_contiguous(self):
        cursor = "9000-000005"
        out = []
        for _ in range(3):
            cursor = allocate(cursor)
            out.append(cursor)
        assert out == ["9000-000006", "9000-000007", "9000-000008"]

    def test_overflow_raises(self):
        with pytest.raises(IdentifierOverflow):
            allocate("9999-999999")

    def test_last_representable_value(self):
        assert allocate("9999-999998") == "9999-999999"

    @pytest.mark.parametrize("bad", ["", "9000000001", "900-0000001", "9000-00000A", " 9000-000001", "9000-0000001"])
    def test_rejects_malformed_identifiers(self, bad):
        with pytest.raises(InvalidIdentifier):
            allocate(bad)


class TestFormatIdentifier:
    def test_formats_with_dash_after_four_digits(self):
        assert format_identifier(9000000123) == "9000-000123"
        assert format_identifier(1) == "0000-000001"

    def test_out_of_range(self):
        with pytest.raises(IdentifierOverflow):
            format_identifier(10**10)
        with pytest.raises(IdentifierOverflow):
            format_identifier(-1)


class TestValidateIdentifier:
    def test_valid(self):
        assert validate_identifier("9000-000001")

    def test_invalid(self):
        assert not validate_identifier("9000-00001")
        assert not validate_identifier("")
        assert not validate_identifier(None)  # type: ignore
