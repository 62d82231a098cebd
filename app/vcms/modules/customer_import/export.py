from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from app.vcms.modules.customer_import.models import ValuedCustomer


@dataclass(frozen=True)
class ExportFormat:
    """How non-string values are rendered. The active flag is always a bool in storage."""

    name: str
    active_label: str
    inactive_label: str
    date_format: str

    def render(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return self.active_label if value else self.inactive_label
        if isinstance(value, (date, datetime)):
            return value.strftime(self.date_format)
        return str(value)


# Post-import confirmation download.
NUMERIC = ExportFormat(name="numeric", active_label="1", inactive_label="0", date_format="%Y-%m-%d")
# Customer sheet download.
LABELED = ExportFormat(name="labeled", active_label="ACTIVE", inactive_label="INACTIVE", date_format="%Y%m%d")

EXPORT_FORMATS = {f.name: f for f in (NUMERIC, LABELED)}

# (header, row key)
CONFIRMATION_COLUMNS: tuple[tuple[str, str], ...] = (
    ("Customer ID", "identifier"),
    ("Customer Name", "name"),
    ("isActive", "active"),
    ("Mother Code", "mother_code"),
    ("Group", "group"),
    ("Date Created", "created_at"),
)

CUSTOMER_SHEET_COLUMNS: tuple[tuple[str, str], ...] = (
    ("CompanyName", "company_name"),
    ("BPName", "name"),
    ("MotherCode", "mother_code"),
    ("Status", "active"),
    ("Group", "group"),
    ("DateEnrolled", "created_at"),
)


def customer_row(c: ValuedCustomer, *, company_name: str = "") -> dict[str, Any]:
    return {
        "identifier": c.identifier,
        "name": c.name,
        "mother_code": c.mother_code,
        "group": c.group,
        "active": bool(c.active),
        "created_at": c.created_at,
        "company_name": company_name,
    }


def render_csv(
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[tuple[str, str]],
    fmt: ExportFormat = NUMERIC,
) -> str:
    """
    Header line plus one line per row. Every field is double-quoted with
    embedded quotes doubled; lines are joined by CRLF with no trailing
    terminator.
    """
    out = io.StringIO()
    w = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
    w.writerow([header for header, _ in columns])
    for row in rows:
        w.writerow([fmt.render(row.get(key)) for _, key in columns])
    return out.getvalue().removesuffix("\r\n")


def render_confirmation_csv(customers: Iterable[ValuedCustomer]) -> str:
    return render_csv((customer_row(c) for c in customers), CONFIRMATION_COLUMNS, NUMERIC)


def render_customer_sheet_csv(customers: Iterable[ValuedCustomer], company_names: Mapping[str, str]) -> str:
    return render_csv(
        (customer_row(c, company_name=company_names.get(c.identifier, "")) for c in customers),
        CUSTOMER_SHEET_COLUMNS,
        LABELED,
    )
