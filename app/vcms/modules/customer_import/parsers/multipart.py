from __future__ import annotations

import re
from dataclasses import dataclass

from app.vcms.modules.customer_import.errors import MalformedUpload, NotCsv

# Delimiter line remainder (transport padding), header lines, then the blank line.
_PART_HEAD_RE = re.compile(r"\A[ \t]*\r?\n((?:[^\r\n]+\r?\n)*)\r?\n")
_FILENAME_RE = re.compile(r'filename="([^"]*)"', re.IGNORECASE)
_CONTENT_TYPE_RE = re.compile(r"^content-type:\s*([^\r\n;]+)", re.IGNORECASE | re.MULTILINE)


@dataclass(frozen=True)
class CsvUpload:
    filename: str | None
    content_type: str | None
    text: str


@dataclass(frozen=True)
class _Part:
    headers: str
    body: str

    @property
    def filename(self) -> str | None:
        m = _FILENAME_RE.search(self.headers)
        return m.group(1) if m else None

    @property
    def content_type(self) -> str | None:
        m = _CONTENT_TYPE_RE.search(self.headers)
        return m.group(1).strip() if m else None


def _infer_boundary(text: str) -> str | None:
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith("--") and len(line) > 2:
            return line[2:]
        return None
    return None


def _split_parts(text: str, boundary: str) -> list[_Part]:
    """
    Split on the delimiter and keep only parts that are closed by a following
    delimiter line and have a header/body blank line.
    """
    chunks = text.split("--" + boundary)
    if len(chunks) < 3:
        return []

    parts: list[_Part] = []
    # chunks[0] is the preamble; chunks[-1] follows the last delimiter (closing "--" or truncated).
    for chunk in chunks[1:-1]:
        if chunk.startswith("--"):
            break
        m = _PART_HEAD_RE.match(chunk)
        if not m:
            continue
        body = chunk[m.end():]
        if body.endswith("\r\n"):
            body = body[:-2]
        elif body.endswith("\n"):
            body = body[:-1]
        parts.append(_Part(headers=m.group(1), body=body))
    return parts


def extract_csv_upload(body: bytes, boundary: str | None = None) -> CsvUpload:
    """
    Return the payload of the first file part of a multipart/form-data body.

    Only the first file part is considered; a part without a filename is used
    only when the body has no file part at all. This is not a complete
    RFC 7578 parser.

    Raises:
        MalformedUpload: no boundary, or no delimited part with a blank line
            between headers and body.
        NotCsv: the extracted payload contains no comma.
    """
    text = (body or b"").decode("utf-8", errors="replace")
    boundary = (boundary or "").strip().strip('"') or _infer_boundary(text)
    if not boundary:
        raise MalformedUpload("No multipart boundary found in request.")

    parts = _split_parts(text, boundary)
    if not parts:
        raise MalformedUpload("No file part found between multipart boundaries.")

    chosen = next((p for p in parts if p.filename is not None), parts[0])
    payload = chosen.body.strip().lstrip("\ufeff").strip()
    if "," not in payload:
        raise NotCsv("Uploaded file has no comma-separated content.")

    return CsvUpload(filename=chosen.filename, content_type=chosen.content_type, text=payload)

