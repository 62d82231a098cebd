from __future__ import annotations

import io
from datetime import date
from typing import Any

from flask import Blueprint, current_app, g, jsonify, request, send_file
from sqlalchemy.exc import SQLAlchemyError

from app.vcms.audit import record_event
from app.vcms.db import db_session
from app.vcms.modules.customer_import.errors import CustomerImportError, PersistenceFailure
from app.vcms.modules.customer_import.export import (
    CONFIRMATION_COLUMNS,
    EXPORT_FORMATS,
    NUMERIC,
    customer_row,
    render_confirmation_csv,
    render_csv,
    render_customer_sheet_csv,
)
from app.vcms.modules.customer_import.parsers.csv import parse_customer_csv
from app.vcms.modules.customer_import.parsers.multipart import extract_csv_upload
from app.vcms.modules.customer_import.service import (
    get_customers_by_identifiers,
    import_customer_batch,
    resolve_company_names,
)

bp = Blueprint("customer_import", __name__)


@bp.errorhandler(CustomerImportError)
def _customer_import_error(e: CustomerImportError):
    rid = getattr(g, "request_id", None)
    if e.status_code >= 500:
        current_app.logger.error("Customer import failed (request_id=%s): %s", rid, e.details, exc_info=e)
    else:
        current_app.logger.warning("Customer import rejected (request_id=%s): %s", rid, e.details)
    return jsonify(e.to_dict()), e.status_code


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _identifier_list(payload: dict[str, Any], key: str) -> list[str] | None:
    ids = payload.get(key)
    if not isinstance(ids, list) or not ids:
        return None
    if not all(isinstance(i, str) and i.strip() for i in ids):
        return None
    return [i.strip() for i in ids]


def _commit(s) -> None:
    try:
        s.commit()
    except SQLAlchemyError as e:
        s.rollback()
        raise PersistenceFailure(f"Commit failed: {e}") from e


@bp.post("/upload")
def customers_upload():
    s = db_session()

    upload = extract_csv_upload(request.get_data(cache=False), request.mimetype_params.get("boundary"))
    rows = parse_customer_csv(upload.text)
    result = import_customer_batch(s, rows, max_attempts=current_app.config.get("IMPORT_MAX_ATTEMPTS", 3))

    record_event(
        s,
        action="customer_import.upload",
        entity_type="ValuedCustomer",
        entity_id="bulk",
        metadata={
            "filename": upload.filename,
            "content_type": upload.content_type,
            "rows_processed": len(rows),
            "rows_created": len(result.accepted),
            "rows_blank": result.skipped_blank,
            "identifier_range": list(result.identifier_range or ()),
            "attempts": result.attempts,
        },
    )
    _commit(s)

    current_app.logger.info(
        "Customer upload %s: created %d, blank %d (request_id=%s)",
        upload.filename,
        len(result.accepted),
        result.skipped_blank,
        getattr(g, "request_id", None),
    )

    if (request.args.get("format") or "").strip().lower() == "csv":
        customers = get_customers_by_identifiers(s, result.identifiers)
        data = render_confirmation_csv(customers).encode("utf-8")
        filename = f"customer_import_{date.today().strftime('%Y%m%d')}.csv"
        return send_file(
            io.BytesIO(data),
            mimetype="text/csv",
            as_attachment=True,
            download_name=filename,
            max_age=0,
        )

    return jsonify(
        {
            "message": "Customers imported successfully",
            "data": [c.to_dict() for c in result.accepted],
            "insertedIdentifiers": result.identifiers,
            "skippedRows": result.skipped_blank,
        }
    )


@bp.post("/export")
def customers_export():
    s = db_session()
    payload = _json_body()

    ids = _identifier_list(payload, "insertedIdentifiers")
    if ids is None:
        return jsonify({"error": "Invalid or empty insertedIdentifiers"}), 400
    fmt = EXPORT_FORMATS.get(str(payload.get("format") or NUMERIC.name).strip().lower())
    if fmt is None:
        return jsonify({"error": f"Unknown format; use one of: {', '.join(EXPORT_FORMATS)}"}), 400

    customers = get_customers_by_identifiers(s, ids)
    if not customers:
        return jsonify({"error": "No data found for the provided identifiers."}), 404

    csv_content = render_csv((customer_row(c) for c in customers), CONFIRMATION_COLUMNS, fmt)

    record_event(
        s,
        action="customer_import.export",
        entity_type="ValuedCustomer",
        entity_id="export",
        metadata={"requested": len(ids), "row_count": len(customers), "format": fmt.name},
    )
    _commit(s)

    return jsonify(
        {
            "message": "Export data fetched successfully",
            "customers": [c.to_dict() for c in customers],
            "csvContent": csv_content,
        }
    )


@bp.post("/export-csv")
def customers_export_csv():
    s = db_session()
    payload = _json_body()

    ids = _identifier_list(payload, "identifiers")
    if ids is None:
        return jsonify({"error": "identifiers array is required"}), 400

    customers = get_customers_by_identifiers(s, ids)
    if not customers:
        return jsonify({"error": "No customers found for the provided identifiers."}), 404

    data = render_customer_sheet_csv(customers, resolve_company_names(customers)).encode("utf-8")

    record_event(
        s,
        action="customer_import.export_csv",
        entity_type="ValuedCustomer",
        entity_id="export",
        metadata={"requested": len(ids), "row_count": len(customers)},
    )
    _commit(s)

    return send_file(
        io.BytesIO(data),
        mimetype="text/csv",
        as_attachment=True,
        download_name="ValuedCustomer.csv",
        max_age=0,
    )
