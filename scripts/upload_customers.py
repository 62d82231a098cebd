"""
Upload a customer CSV to a running server and print the assigned identifiers.

Usage:
  python scripts/upload_customers.py customers.csv --url http://localhost:8080
  python scripts/upload_customers.py customers.csv --save-csv confirmation.csv
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.vcms.modules.customer_import.client import CustomerImportClient, CustomerImportClientError  # noqa: E402
from app.vcms.modules.customer_import.errors import RequestTimeout  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Bulk-import customers from a CSV file.")
    ap.add_argument("csv_path", type=Path)
    ap.add_argument("--url", default=os.environ.get("VCMS_URL", "http://localhost:8080"))
    ap.add_argument("--timeout", type=int, default=int(os.environ.get("REQUEST_TIMEOUT_SECONDS") or 30))
    ap.add_argument("--save-csv", type=Path, default=None, help="Also download the confirmation CSV here.")
    args = ap.parse_args(argv)

    client = CustomerImportClient(base_url=args.url, timeout_seconds=args.timeout)
    try:
        result = client.upload_csv(args.csv_path.name, args.csv_path.read_bytes())
        print(json.dumps(result, indent=2))
        if args.save_csv and result.get("insertedIdentifiers"):
            export = client.export(result["insertedIdentifiers"])
            args.save_csv.write_bytes(export["csvContent"].encode("utf-8"))
            print(f"Wrote {args.save_csv}")
    except RequestTimeout as e:
        print(f"TIMEOUT: {e.details} Check the customer list before resubmitting.", file=sys.stderr)
        return 2
    except CustomerImportClientError as e:
        print(f"REJECTED: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
