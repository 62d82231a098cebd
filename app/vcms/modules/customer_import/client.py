from __future__ import annotations

import json
import socket
import urllib.error
import urllib.request
import uuid
from dataclasses import dataclass
from typing import Any

from app.vcms.modules.customer_import.errors import RequestTimeout


class CustomerImportClientError(RuntimeError):
    def __init__(self, status: int, body: dict[str, Any]) -> None:
        super().__init__(f"HTTP {status}: {body.get('error')} ({body.get('details', '')})")
        self.status = status
        self.body = body


def encode_multipart_file(filename: str, content: bytes, *, field: str = "file", boundary: str | None = None) -> tuple[bytes, str]:
    """Return (body, content_type) for a single-file multipart/form-data upload."""
    boundary = boundary or f"----VcmsFormBoundary{uuid.uuid4().hex}"
    # Percent-encode the characters that would end the quoted parameter or the header line.
    filename = filename.replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")
    head = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{field}"; filename="{filename}"\r\n'
        "Content-Type: text/csv\r\n"
        "\r\n"
    ).encode("utf-8")
    tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return head + content + tail, f"multipart/form-data; boundary={boundary}"


@dataclass(frozen=True)
class CustomerImportClient:
    """
    Calls the customer import API. There is no retry: after a timeout the
    server may or may not have stored the batch, so check before resubmitting.
    """

    base_url: str
    timeout_seconds: int = 30

    def _post(self, path: str, data: bytes, content_type: str) -> tuple[int, bytes]:
        url = self.base_url.rstrip("/") + path
        req = urllib.request.Request(url, data=data, method="POST")
        req.add_header("Content-Type", content_type)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                return resp.status, resp.read()
        except urllib.error.HTTPError as e:
            try:
                body = json.loads(e.read().decode("utf-8"))
            except ValueError:
                body = {"error": e.reason}
            raise CustomerImportClientError(e.code, body if isinstance(body, dict) else {"error": str(body)}) from e
        except urllib.error.URLError as e:
            if isinstance(e.reason, (socket.timeout, TimeoutError)):
                raise RequestTimeout(f"POST {path} gave no response within {self.timeout_seconds}s.") from e
            raise
        except (socket.timeout, TimeoutError) as e:
            raise RequestTimeout(f"POST {path} gave no response within {self.timeout_seconds}s.") from e

    def upload_csv(self, filename: str, content: bytes, *, as_csv: bool = False) -> dict[str, Any] | bytes:
        body, content_type = encode_multipart_file(filename, content)
        path = "/api/customers/upload" + ("?format=csv" if as_csv else "")
        _, raw = self._post(path, body, content_type)
        if as_csv:
            return raw
        return json.loads(raw.decode("utf-8"))

    def export(self, identifiers: list[str], *, fmt: str = "numeric") -> dict[str, Any]:
        payload = json.dumps({"insertedIdentifiers": identifiers, "format": fmt}).encode("utf-8")
        _, raw = self._post("/api/customers/export", payload, "application/json")
        return json.loads(raw.decode("utf-8"))

    def export_customer_sheet(self, identifiers: list[str]) -> bytes:
        payload = json.dumps({"identifiers": identifiers}).encode("utf-8")
        _, raw = self._post("/api/customers/export-csv", payload, "application/json")
        return raw
