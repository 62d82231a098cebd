from __future__ import annotations

import re

from app.vcms.modules.customer_import.errors import IdentifierOverflow, InvalidIdentifier

REQUIRED_HEADERS = ("Customer Name", "Mother Code", "Group")

# Column widths of valuedcustomer.MotherCode and valuedcustomer.Vgroup.
FIELD_MAX_LENGTHS = {"Mother Code": 64, "Group": 128}

# Value read as "current max" when the table is empty; the first allocation is 9000-000001.
EMPTY_STORAGE_IDENTIFIER = "9000-000000"

IDENTIFIER_RE = re.compile(r"^\d{4}-\d{6}$")
_IDENTIFIER_DIGITS = 10
_PREFIX_DIGITS = 4
_MAX_IDENTIFIER_VALUE = 10**_IDENTIFIER_DIGITS - 1


def normalize_text(s: str | None) -> str:
    return (s or "").strip()


def validate_identifier(identifier: str) -> bool:
    return bool(IDENTIFIER_RE.fullmatch(identifier or ""))


def format_identifier(value: int) -> str:
    """Render an integer as DDDD-DDDDDD."""
    if value < 0 or value > _MAX_IDENTIFIER_VALUE:
        raise IdentifierOverflow(f"{value} does not fit in {_IDENTIFIER_DIGITS} digits.")
    digits = str(value).zfill(_IDENTIFIER_DIGITS)
    return f"{digits[:_PREFIX_DIGITS]}-{digits[_PREFIX_DIGITS:]}"


def allocate(current: str) -> str:
    """
    Return the identifier numerically one greater than `current`.

    Examples:
        >>> allocate("9000-000000")
        '9000-000001'
        >>> allocate("9000-000999")
        '9000-001000'
    """
    if not validate_identifier(current):
        raise InvalidIdentifier(f"Identifier {current!r} is not in DDDD-DDDDDD format.")
    value = int(current.replace("-", "")) + 1
    if value > _MAX_IDENTIFIER_VALUE:
        raise IdentifierOverflow(f"No identifier after {current}.")
    return format_identifier(value)
