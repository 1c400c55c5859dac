from __future__ import annotations

from datetime import datetime
from typing import Optional

from flask import Flask, jsonify, request

from ..common.web import actor, api_key_required, date_arg, int_arg, json_body
from ..container import Container
from ..core.enums import HostelState, PersonKind
from ..core.exceptions import ValidationError
from ..leaves.model import Cancel, EarlyReturn, LeaveDecision, Override
from .results import MarkAccepted, MarkCancelled


def _resolution(data: Optional[dict]) -> Optional[LeaveDecision]:
    if not data:
        return None
    action = str(data.get("action") or "").strip().lower()
    if action == "override":
        return Override(reason=str(data.get("reason") or ""))
    if action in {"early_return", "early-return", "earlyreturn"}:
        return EarlyReturn(
            return_date=date_arg(data.get("returnDate"), "returnDate"),
            notes=str(data.get("notes") or ""),
        )
    if action == "cancel":
        return Cancel()
    raise ValidationError("resolution.action must be override, early_return or cancel")


def _kind(value: Optional[str]) -> Optional[PersonKind]:
    if not value:
        return None
    try:
        return PersonKind(str(value).lower())
    except ValueError:
        raise ValidationError("kind must be student or employee")


def _state(value: Optional[str]) -> HostelState:
    if str(value or "").upper() not in {"IN", "OUT"}:
        raise ValidationError("state must be IN or OUT")
    return HostelState(str(value).upper())


def _outcome_response(outcome):
    if isinstance(outcome, MarkAccepted):
        return jsonify({"success": True, **outcome.to_dict()}), 201
    if isinstance(outcome, MarkCancelled):
        return jsonify({"success": True, **outcome.to_dict()}), 200
    return jsonify({"success": False, **outcome.to_dict()}), 409


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/mark", methods=["POST"], endpoint="api_mark_attendance")
    @api_key_required
    def mark_attendance():
        data = json_body()
        work_date = date_arg(data.get("date"), "date", default=datetime.now().date())
        outcome = container.attendance_service.mark_attendance(
            int_arg(data.get("personId"), "personId"),
            data.get("type"),
            data.get("notes"),
            _resolution(data.get("resolution")),
            work_date=work_date,
            actor=actor(),
        )
        return _outcome_response(outcome)

    @app.route("/api/attendance/scan", methods=["POST"], endpoint="api_biometric_scan")
    @api_key_required
    def biometric_scan():
        data = json_body()
        raw_id = str(data.get("rawId") or "").strip()
        device_id = str(data.get("deviceId") or "").strip()
        if not raw_id or not device_id:
            raise ValidationError("rawId and deviceId are required")
        person_id = data.get("personId")
        outcome = container.attendance_service.record_scan(
            raw_id,
            device_id,
            person_id=int_arg(person_id, "personId") if person_id is not None else None,
        )
        return _outcome_response(outcome)

    @app.route("/api/attendance/check-leave/<int:person_id>", methods=["GET"], endpoint="api_check_leave")
    @api_key_required
    def check_leave(person_id: int):
        day = date_arg(request.args.get("date"), "date", default=datetime.now().date())
        container.state_store.get_person(person_id)
        check = container.leave_coordinator.check_leave(person_id, day)
        return jsonify({"success": True, **check.to_dict()})

    @app.route("/api/leaves/<int:leave_id>/early-return", methods=["POST"], endpoint="api_early_return")
    @api_key_required
    def early_return(leave_id: int):
        data = json_body()
        leave = container.leave_coordinator.process_early_return(
            leave_id,
            return_date=date_arg(data.get("returnDate"), "returnDate"),
            notes=str(data.get("notes") or ""),
            actor=actor(),
        )
        return jsonify({"success": True, "leave": leave.to_dict()})

    @app.route("/api/attendance/state-consistency", methods=["GET"], endpoint="api_state_consistency")
    @api_key_required
    def state_consistency():
        drifts = container.state_store.check_all(kind=_kind(request.args.get("kind")))
        return jsonify({"success": True, "issues": [d.to_dict() for d in drifts]})

    @app.route("/api/attendance/states/reset-all", methods=["POST"], endpoint="api_reset_all_states")
    @api_key_required
    def reset_all_states():
        data = json_body()
        count = container.state_store.reset_all(
            _state(data.get("state")),
            actor=actor(),
            kind=_kind(data.get("kind")),
            reason=str(data.get("reason") or "Bulk state reset"),
        )
        return jsonify({"success": True, "updated": count})

    @app.route("/api/persons/<int:person_id>/state/reset", methods=["POST"], endpoint="api_reset_state")
    @api_key_required
    def reset_state(person_id: int):
        data = json_body()
        new_state = container.state_store.reset_state(
            person_id,
            reason=str(data.get("reason") or ""),
            actor=actor(),
            new_state=_state(data["state"]) if data.get("state") else None,
        )
        return jsonify({"success": True, "personId": person_id, "state": new_state.value})

    @app.route("/api/persons/<int:person_id>/state", methods=["GET"], endpoint="api_person_state")
    @api_key_required
    def person_state(person_id: int):
        person = container.state_store.get_person(person_id)
        drift = container.state_store.check_consistency(person_id)
        return jsonify({"success": True, "person": person.to_dict(), "drift": drift.to_dict() if drift else None})

    @app.route("/api/attendance/day-counts/<int:person_id>", methods=["GET"], endpoint="api_day_counts")
    @api_key_required
    def day_counts(person_id: int):
        counts = container.day_count_service.count_days(
            person_id,
            date_arg(request.args.get("from"), "from"),
            date_arg(request.args.get("to"), "to"),
        )
        return jsonify({"success": True, **counts.to_dict()})

    @app.route("/api/attendance/hours-report", methods=["GET"], endpoint="api_hours_report")
    @api_key_required
    def hours_report():
        person_id = request.args.get("personId")
        report = container.day_count_service.build_hours_report(
            start=date_arg(request.args.get("from"), "from"),
            end=date_arg(request.args.get("to"), "to"),
            person_id=int_arg(person_id, "personId") if person_id else None,
        )
        return jsonify({"success": True, "rows": report.rows, "summary": report.summary})
