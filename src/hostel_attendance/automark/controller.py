from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import api_key_required, date_arg, json_body
from ..container import Container
from ..core.enums import PersonKind
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/auto-mark", methods=["POST"], endpoint="api_auto_mark")
    @api_key_required
    def run_auto_mark():
        data = json_body()
        try:
            kind = PersonKind(data["kind"]) if data.get("kind") else None
        except ValueError:
            raise ValidationError("kind must be student or employee")

        if data.get("from") or data.get("to"):
            result = container.automark_service.run_for_range(
                date_arg(data.get("from"), "from"),
                date_arg(data.get("to"), "to"),
                kind=kind,
            )
        else:
            result = container.automark_service.run_for_date(date_arg(data.get("date"), "date"), kind=kind)
        return jsonify({"success": True, **result.to_dict()})

    @app.route("/api/attendance/auto-mark/status", methods=["GET"], endpoint="api_auto_mark_status")
    @api_key_required
    def auto_mark_status():
        settings = container.settings_service.get()
        return jsonify(
            {
                "success": True,
                "scheduler": container.scheduler.status(),
                "lastRunInfo": settings.last_run_info.to_dict() if settings.last_run_info else None,
            }
        )
