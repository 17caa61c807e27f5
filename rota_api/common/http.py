# rota_api/common/http.py
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum

from flask import jsonify


def to_json(value):
    """Turn DTOs (dataclasses), enums and dates into JSON-ready values."""
    if is_dataclass(value) and not isinstance(value, type):
        return to_json(asdict(value))
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value

def ok(data=None, status=200, **meta):
    payload = {"success": True, "data": to_json(data)}
    if meta:
        payload["meta"] = meta
    return jsonify(payload), status

def fail(message="Bad Request", status=400, code=None, detail=None, errors=None):
    err = {"message": message}
    if code: err["code"] = code
    if detail: err["detail"] = detail
    if errors: err["errors"] = errors
    return jsonify({"success": False, "error": err}), status
