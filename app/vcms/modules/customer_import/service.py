"""
CUSTOMER IMPORT PIPELINE
========================

upload body -> extract_csv_upload() -> parse_customer_csv() -> import_customer_batch()

import_customer_batch() owns identifier allocation:

1. Read the current max VCustID once (the allocation cursor).
2. Drop rows with a blank Customer Name (they do not consume an identifier).
3. Allocate contiguous identifiers for the remaining rows, in file order.
4. Insert the whole batch with one INSERT inside a SAVEPOINT.

INVARIANTS:
- A batch is stored completely or not at all.
- Identifiers within a batch are contiguous and follow file order.
- Two imports never share an identifier: the primary key on VCustID rejects
  the losing batch, which re-reads the max and re-plans (bounded by
  max_attempts). Any other database error fails the batch immediately.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.vcms.modules.customer_import.errors import IdentifierConflict, PersistenceFailure
from app.vcms.modules.customer_import.models import ValuedCustomer
from app.vcms.modules.customer_import.utils import EMPTY_STORAGE_IDENTIFIER, allocate, normalize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcceptedCustomer:
    identifier: str
    name: str
    mother_code: str | None
    group: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "name": self.name,
            "motherCode": self.mother_code,
            "group": self.group,
        }


@dataclass(frozen=True)
class ImportResult:
    accepted: list[AcceptedCustomer]
    skipped_blank: int = 0
    attempts: int = 1
    cursor_start: str = EMPTY_STORAGE_IDENTIFIER

    @property
    def identifiers(self) -> list[str]:
        return [c.identifier for c in self.accepted]

    @property
    def identifier_range(self) -> tuple[str, str] | None:
        if not self.accepted:
            return None
        return self.accepted[0].identifier, self.accepted[-1].identifier


def plan_batch(rows: Iterable[Mapping[str, str]], current_max: str) -> tuple[list[AcceptedCustomer], int]:
    """
    Assign identifiers to the non-blank rows of a batch, without touching storage.

    Returns (accepted, skipped_blank_count).
    """
    accepted: list[AcceptedCustomer] = []
    skipped = 0
    cursor = current_max
    for row in rows:
        name = normalize_text(row.get("Customer Name"))
        if not name:
            skipped += 1
            continue
        cursor = allocate(cursor)
        accepted.append(
            AcceptedCustomer(
                identifier=cursor,
                name=name,
                mother_code=normalize_text(row.get("Mother Code")) or None,
                group=normalize_text(row.get("Group")),
            )
        )
    return accepted, skipped


def get_current_max_identifier(s: Session) -> str:
    try:
        current = s.execute(select(func.max(ValuedCustomer.identifier))).scalar_one_or_none()
    except SQLAlchemyError as e:
        raise PersistenceFailure(f"Could not read the current customer identifier: {e}") from e
    return current or EMPTY_STORAGE_IDENTIFIER


def insert_customer_batch(s: Session, customers: Sequence[AcceptedCustomer]) -> None:
    """
    Single INSERT for the whole batch inside a SAVEPOINT, so a rejected batch
    leaves the surrounding transaction usable.
    """
    if not customers:
        return
    values = [
        {
            "identifier": c.identifier,
            "name": c.name,
            "mother_code": c.mother_code,
            "group": c.group,
        }
        for c in customers
    ]
    try:
        with s.begin_nested():
            s.execute(insert(ValuedCustomer), values)
    except IntegrityError as e:
        raise IdentifierConflict(
            f"Identifiers {customers[0].identifier}..{customers[-1].identifier} are already taken."
        ) from e
    except SQLAlchemyError as e:
        raise PersistenceFailure(f"Database rejected the batch: {e}") from e


def execute_import(s: Session, rows: Sequence[Mapping[str, str]], current_max: str) -> ImportResult:
    accepted, skipped = plan_batch(rows, current_max)
    insert_customer_batch(s, accepted)
    return ImportResult(accepted=accepted, skipped_blank=skipped, cursor_start=current_max)


def import_customer_batch(s: Session, rows: Sequence[Mapping[str, str]], *, max_attempts: int = 3) -> ImportResult:
    """
    Read-allocate-insert loop. Only an identifier conflict re-reads the max and
    re-plans; the caller still commits the session.
    """
    last_conflict: IdentifierConflict | None = None
    for attempt in range(1, max_attempts + 1):
        current_max = get_current_max_identifier(s)
        try:
            result = execute_import(s, rows, current_max)
        except IdentifierConflict as e:
            last_conflict = e
            logger.warning(
                "Identifier conflict importing %d rows after %s (attempt %d/%d)",
                len(rows),
                current_max,
                attempt,
                max_attempts,
            )
            continue
        logger.info(
            "Imported %d customers (%d blank rows skipped, range=%s, attempts=%d)",
            len(result.accepted),
            result.skipped_blank,
            result.identifier_range,
            attempt,
        )
        return replace(result, attempts=attempt)

    raise PersistenceFailure(
        f"Could not allocate identifiers after {max_attempts} attempts; resubmit the file.",
    ) from last_conflict


def get_customers_by_identifiers(s: Session, identifiers: Iterable[str]) -> list[ValuedCustomer]:
    ids = sorted({i for i in identifiers if i})
    if not ids:
        return []
    stmt = select(ValuedCustomer).where(ValuedCustomer.identifier.in_(ids)).order_by(ValuedCustomer.identifier.asc())
    return list(s.execute(stmt).scalars().all())


def resolve_company_names(customers: Sequence[ValuedCustomer]) -> dict[str, str]:
    """
    Map each customer identifier to the name of the customer its mother code
    points at. Only customers in the same export are considered; anything else
    maps to "".
    """
    names = {c.identifier: c.name for c in customers}
    return {c.identifier: names.get(c.mother_code or "", "") for c in customers}
