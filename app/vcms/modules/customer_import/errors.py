"""Error taxonomy for the customer import pipeline."""

from __future__ import annotations

from typing import Any


class CustomerImportError(Exception):
    """Base class. Carries the HTTP status and the JSON error body fields."""

    status_code = 400
    error = "Customer import failed"

    def __init__(self, details: str | None = None, *, extra: dict[str, Any] | None = None) -> None:
        super().__init__(details or self.error)
        self.details = details or self.error
        self.extra = extra or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "details": self.details}
        body.update(self.extra)
        return body


class MalformedUpload(CustomerImportError):
    """Body is not multipart, or no boundary-delimited part with a body was found."""

    error = "Malformed upload"


class NotCsv(CustomerImportError):
    """Extracted payload has no comma delimiter at all."""

    error = "Only CSV files are allowed"


class InvalidSchema(CustomerImportError):
    error = "Invalid CSV format"


class MalformedRow(CustomerImportError):
    """Row with the wrong number of columns or broken quoting."""

    error = "Malformed CSV row"


class InvalidIdentifier(CustomerImportError):
    status_code = 500
    error = "Invalid customer identifier"


class IdentifierOverflow(CustomerImportError):
    status_code = 500
    error = "Customer identifier range exhausted"


class PersistenceFailure(CustomerImportError):
    status_code = 500
    error = "Failed to save customers"


class RequestTimeout(CustomerImportError):
    """Raised client-side; the server outcome is unknown."""

    status_code = 504
    error = "Request timed out"


class IdentifierConflict(PersistenceFailure):
    """The identifier primary key rejected the batch: another import took part of the range."""

    error = "Customer identifier conflict"
