from __future__ import annotations

import io
import re
from collections.abc import Iterator, Sequence
from dataclasses import asdict, dataclass

from app.vcms.modules.customer_import.errors import InvalidSchema, MalformedRow
from app.vcms.modules.customer_import.utils import FIELD_MAX_LENGTHS, REQUIRED_HEADERS

# One field plus its terminator: a quoted span ("" is a literal quote) or a run
# of non-quote, non-comma characters, followed by a comma or the end of line.
_FIELD_RE = re.compile(r'[ \t]*(?:"((?:[^"]|"")*)"[ \t]*|([^",]*))(,|\Z)')


@dataclass(frozen=True)
class CsvRowError:
    row_number: int
    message: str


class CsvSyntaxError(ValueError):
    pass


def parse_csv_line(line: str) -> list[str]:
    """
    Split a single CSV line into trimmed fields.

    >>> parse_csv_line('Alice,"Jones, Jr.",G1')
    ['Alice', 'Jones, Jr.', 'G1']
    """
    fields: list[str] = []
    pos = 0
    while True:
        m = _FIELD_RE.match(line, pos)
        if not m:
            raise CsvSyntaxError(f"Unexpected quote at column {pos + 1}.")
        quoted, bare, terminator = m.groups()
        if quoted is not None:
            fields.append(quoted.replace('""', '"').strip())
        else:
            fields.append(bare.strip())
        if not terminator:
            return fields
        pos = m.end()


class CsvTokenizer:
    """
    Lazy row iterator over CSV text. Each iteration rescans the text from the
    start, so the same tokenizer can be iterated more than once.

    Rows end at "\\n" (a preceding "\\r" is dropped). Blank lines produce no row.
    """

    def __init__(self, text: str) -> None:
        self.text = text

    def numbered_rows(self) -> Iterator[tuple[int, list[str]]]:
        for line_number, line in enumerate(io.StringIO(self.text), start=1):
            line = line.rstrip("\n")
            if line.endswith("\r"):
                line = line[:-1]
            if not line.strip():
                continue
            try:
                yield line_number, parse_csv_line(line)
            except CsvSyntaxError as e:
                raise MalformedRow(
                    f"Line {line_number}: {e}",
                    extra={"rows": [asdict(CsvRowError(line_number, str(e)))]},
                ) from e

    def __iter__(self) -> Iterator[list[str]]:
        for _, fields in self.numbered_rows():
            yield fields


def validate_header(header: Sequence[str]) -> None:
    """Exact, ordered, case-sensitive match against REQUIRED_HEADERS."""
    if tuple(header) != REQUIRED_HEADERS:
        raise InvalidSchema(
            f"Expected header {', '.join(REQUIRED_HEADERS)}; got {', '.join(header) or '(empty)'}.",
        )


def parse_customer_csv(text: str) -> list[dict[str, str]]:
    """
    Tokenize an uploaded customer CSV into an import batch.

    Expected headers (exact order, case sensitive):
    - Customer Name
    - Mother Code
    - Group

    Every data row must have exactly three fields. Rows with any other count
    are collected and the whole file is rejected with MalformedRow; columns are
    never shifted to guess what the row meant. Mother Code and Group
    must fit their storage columns (FIELD_MAX_LENGTHS).

    Returns:
        Candidate rows keyed by header name, in file order. Rows with an empty
        Customer Name are kept here; the import executor drops them.
    """
    rows_iter = CsvTokenizer(text).numbered_rows()
    first = next(rows_iter, None)
    if first is None:
        raise InvalidSchema("CSV has no header row.")
    validate_header(first[1])

    rows: list[dict[str, str]] = []
    errors: list[CsvRowError] = []
    for line_number, fields in rows_iter:
        if len(fields) != len(REQUIRED_HEADERS):
            errors.append(
                CsvRowError(line_number, f"Expected {len(REQUIRED_HEADERS)} columns, found {len(fields)}."),
            )
            continue
        row = dict(zip(REQUIRED_HEADERS, fields))
        for column, limit in FIELD_MAX_LENGTHS.items():
            if len(row[column]) > limit:
                errors.append(
                    CsvRowError(line_number, f"{column} is longer than {limit} characters."),
                )
        rows.append(row)

    if errors:
        raise MalformedRow(
            f"{len(errors)} problem(s) found in the CSV rows.",
            extra={"rows": [asdict(e) for e in errors]},
        )
    return rows
