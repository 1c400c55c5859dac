from __future__ import annotations

from flask import Flask, jsonify, request

from ..attendance.service import parse_entry_type
from ..common.web import api_key_required, date_arg, int_arg, json_body
from ..container import Container
from ..core.exceptions import ValidationError
from .model import BatchItem


def _items(raw) -> list[BatchItem]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("items must be a non-empty list")
    items = []
    for row in raw:
        if not isinstance(row, dict):
            raise ValidationError("each item must be an object")
        items.append(
            BatchItem(
                person_id=int_arg(row.get("personId"), "personId"),
                entry_type=parse_entry_type(row.get("type")),
                notes=row.get("notes") or None,
            )
        )
    return items


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="api_bulk_mark")
    @api_key_required
    def bulk_mark():
        data = json_body()
        result = container.batch_processor.bulk_mark(
            date_arg(data.get("date"), "date"),
            _items(data.get("items")),
            data.get("notes"),
        )
        return jsonify({"success": True, **result.to_dict()})

    @app.route("/api/attendance/bulk/csv", methods=["POST"], endpoint="api_bulk_mark_csv")
    @api_key_required
    def bulk_mark_csv():
        upload = request.files.get("file")
        if upload is not None:
            if not (upload.filename or "").lower().endswith(".csv"):
                raise ValidationError("Only CSV files are allowed")
            text = upload.stream.read().decode("utf-8-sig")
        else:
            text = request.get_data(as_text=True)
        if not text.strip():
            raise ValidationError("CSV content is required")

        work_date = date_arg(request.args.get("date") or request.form.get("date"), "date")
        notes = request.args.get("notes") or request.form.get("notes")
        result = container.batch_processor.bulk_mark_csv(work_date, text, notes)
        return jsonify({"success": True, **result.to_dict()})
