# rota_api/common/params.py
"""Request binding helpers. Bad input raises ValidationError (422)."""
from datetime import date, datetime, timedelta, timezone

from flask import request

from rota_api.common.errors import InvalidRange, ValidationError
from rota_api.services.time_window import utcnow


def parse_date(s):
    if not s:
        return None
    for fmt in ("%Y-%m-%d", "%d-%m-%Y"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            pass
    raise ValidationError(f"Invalid date '{s}'; expected YYYY-MM-DD.")


def parse_dt(s, field="datetime"):
    """ISO 8601 -> naive UTC datetime. Offsets are converted; naive input is taken as UTC."""
    if s in (None, ""):
        return None
    if isinstance(s, datetime):
        dt = s
    else:
        raw = str(s).strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(f"Invalid {field} '{s}'; expected ISO 8601.", payload={"field": field})
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def arg_date(name, default=None, required=False) -> date:
    v = parse_date(request.args.get(name))
    if v is None and required:
        raise ValidationError(f"{name} is required.", payload={"field": name})
    return v if v is not None else default


def arg_int(name, default=None):
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer.", payload={"field": name})


def arg_bool(name):
    raw = (request.args.get(name) or "").strip().lower()
    if not raw:
        return None
    if raw in ("1", "true", "yes"):
        return True
    if raw in ("0", "false", "no"):
        return False
    raise ValidationError(f"{name} must be true or false.", payload={"field": name})


def body():
    d = request.get_json(silent=True)
    return d if isinstance(d, dict) else {}


def require_fields(d: dict, *fields):
    missing = [f for f in fields if d.get(f) in (None, "")]
    if missing:
        raise ValidationError("Missing required fields: " + ", ".join(missing), payload={"missing": missing})


def as_int(v, field):
    if v is None or v == "":
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer.", payload={"field": field})


def arg_range(default_days=None):
    """
    (start_date, end_date) from ?start_date&end_date, inclusive.
    With ``default_days`` a missing start means today and a missing end means
    start + default_days - 1; otherwise both are required.
    """
    start = arg_date("start_date")
    end = arg_date("end_date")
    if default_days is not None:
        start = start or utcnow().date()
        end = end or start + timedelta(days=default_days - 1)
    if start is None or end is None:
        raise ValidationError("start_date and end_date are required.")
    if start > end:
        raise InvalidRange("start_date cannot be after end_date.")
    return start, end
