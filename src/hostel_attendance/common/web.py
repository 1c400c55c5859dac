from __future__ import annotations

import hmac
import logging
from datetime import date
from functools import wraps
from typing import Optional

from flask import Flask, current_app, jsonify, request

from ..core.exceptions import (
    DomainError,
    NotFoundError,
    ReconciliationRequiredError,
    TransientError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ReconciliationRequiredError, 409),
    (TransientError, 503),
)


def api_key_required(view):
    """Require the X-Api-Key header when API_TOKEN is configured."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        token = current_app.config.get("API_TOKEN")
        if token:
            supplied = request.headers.get("X-Api-Key", "")
            if not hmac.compare_digest(supplied, token):
                return jsonify({"success": False, "message": "Invalid or missing API key"}), 401
        return view(*args, **kwargs)

    return wrapper


def actor() -> Optional[str]:
    return request.headers.get("X-Actor") or None


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data


def date_arg(value: Optional[str], field_name: str, *, default: Optional[date] = None) -> date:
    if not value:
        if default is None:
            raise ValidationError(f"{field_name} is required")
        return default
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def int_arg(value, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = 500
        for error_type, code in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                status = code
                break
        body = {"success": False, "message": str(exc), "error": type(exc).__name__}
        if isinstance(exc, ReconciliationRequiredError):
            body["eventIds"] = list(exc.event_ids)
        if status >= 500:
            logger.warning("Request failed with %s: %s", type(exc).__name__, exc)
        return jsonify(body), status
