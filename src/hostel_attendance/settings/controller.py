from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import api_key_required, json_body
from ..container import Container
from ..core.exceptions import ValidationError

_FIELDS = {
    "autoMarkEnabled": "auto_mark_enabled",
    "autoMarkTime": "auto_mark_time",
    "firstEntryMustBeIn": "first_entry_must_be_in",
    "stateBasedPresentAbsent": "state_based_present_absent",
    "expectedCheckIn": "expected_check_in",
    "lateThresholdMinutes": "late_threshold_minutes",
}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/settings", methods=["GET"], endpoint="api_get_settings")
    @api_key_required
    def get_settings():
        return jsonify({"success": True, "settings": container.settings_service.get().to_dict()})

    @app.route("/api/attendance/settings", methods=["PUT"], endpoint="api_update_settings")
    @api_key_required
    def update_settings():
        data = json_body()
        unknown = set(data) - set(_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        updated = container.settings_service.update(**{_FIELDS[k]: v for k, v in data.items()})
        return jsonify({"success": True, "settings": updated.to_dict()})
