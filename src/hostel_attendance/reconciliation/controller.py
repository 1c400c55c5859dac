from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import actor, api_key_required, date_arg, json_body
from ..container import Container
from ..core.constants import BULK_RESOLUTION_NOTE
from ..core.enums import IssueSeverity, PersonKind
from ..core.exceptions import ValidationError


def _flag(value) -> bool:
    return str(value).lower() in {"1", "true", "yes"}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/reconciliation", methods=["GET"], endpoint="api_reconciliation_list")
    @api_key_required
    def reconciliation_list():
        args = request.args
        try:
            kind = PersonKind(args["kind"]) if args.get("kind") else None
            severity = IssueSeverity(args["severity"]) if args.get("severity") else None
        except ValueError:
            raise ValidationError("Unknown kind or severity filter")

        events = container.reconciliation_queue.list(
            date_arg(args.get("date"), "date") if args.get("date") else None,
            kind=kind,
            block=args.get("block") or None,
            severity=severity,
            include_reconciled=_flag(args.get("includeReconciled")),
        )
        return jsonify({"success": True, "count": len(events), "records": [e.to_dict() for e in events]})

    @app.route("/api/attendance/reconciliation/stats", methods=["GET"], endpoint="api_reconciliation_stats")
    @api_key_required
    def reconciliation_stats():
        stats = container.reconciliation_queue.stats(date_arg(request.args.get("date"), "date"))
        return jsonify({"success": True, **stats.to_dict()})

    @app.route("/api/attendance/<int:event_id>/reconcile", methods=["PUT"], endpoint="api_reconcile")
    @api_key_required
    def reconcile(event_id: int):
        data = json_body()
        event = container.reconciliation_queue.resolve(
            event_id,
            notes=str(data.get("notes") or ""),
            status=data.get("status"),
            actor=actor(),
        )
        return jsonify({"success": True, "record": event.to_dict()})

    @app.route("/api/attendance/reconciliation/approve-all", methods=["PUT"], endpoint="api_reconcile_all")
    @api_key_required
    def reconcile_all():
        data = json_body()
        try:
            kind = PersonKind(data["kind"]) if data.get("kind") else None
        except ValueError:
            raise ValidationError("kind must be student or employee")

        result = container.reconciliation_queue.resolve_all(
            date_arg(data.get("date"), "date"),
            status=data.get("status"),
            notes=str(data.get("notes") or BULK_RESOLUTION_NOTE),
            kind=kind,
            block=data.get("block") or None,
            include_errors=bool(data.get("includeErrors", False)),
            actor=actor(),
        )
        return jsonify({"success": True, **result.to_dict()})
