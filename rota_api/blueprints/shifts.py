from flask import Blueprint

from rota_api.common.auth import current_actor, requires_perms
from rota_api.common.http import ok
from rota_api.common.params import arg_bool, arg_date, arg_int, as_int, body, parse_dt, require_fields
from rota_api.models.scheduling import Shift, ShiftType
from rota_api.repository import Repository
from rota_api.services.shift_service import ShiftService

bp = Blueprint("shifts", __name__, url_prefix="/api/v1/shifts")


def _row(s: Shift, names: dict, types: dict):
    st = types.get(s.shift_type_id)
    return {
        "id": s.id,
        "employee_id": s.employee_id,
        "employee_name": names.get(s.employee_id),
        "shift_type_id": s.shift_type_id,
        "shift_type_name": st.name if st else None,
        "is_on_call": bool(st and st.is_on_call),
        "start_at": s.start_at,
        "end_at": s.end_at,
        "notes": s.notes,
        "version": s.version,
        "updated_at": s.updated_at,
    }


def _rows(svc: ShiftService, shifts):
    names = svc.employee_names(shifts)
    types = svc.repo.by_ids(ShiftType, {s.shift_type_id for s in shifts})
    return [_row(s, names, types) for s in shifts]


def _payload():
    d = body()
    require_fields(d, "employee_id", "start_at", "end_at")
    return {
        "employee_id": as_int(d["employee_id"], "employee_id"),
        "shift_type_id": as_int(d.get("shift_type_id"), "shift_type_id"),
        "start_at": parse_dt(d["start_at"], "start_at"),
        "end_at": parse_dt(d["end_at"], "end_at"),
        "notes": d.get("notes"),
    }, as_int(d.get("version"), "version")


@bp.get("")
@requires_perms("rota.view")
def list_shifts():
    svc = ShiftService(Repository())
    shifts = svc.list_shifts(
        start_date=arg_date("start_date"),
        end_date=arg_date("end_date"),
        employee_id=arg_int("employee_id"),
        team_id=arg_int("team_id"),
        is_on_call=arg_bool("is_on_call"),
    )
    return ok(_rows(svc, shifts), count=len(shifts))


@bp.get("/<int:shift_id>")
@requires_perms("rota.view")
def get_shift(shift_id: int):
    svc = ShiftService(Repository())
    return ok(_rows(svc, [svc.get_shift(shift_id)])[0])


@bp.post("")
@requires_perms("rota.edit")
def create_shift():
    data, _ = _payload()
    repo = Repository()
    svc = ShiftService(repo)
    shift = svc.create_shift(actor_user_id=current_actor(repo).user_id, **data)
    return ok(_rows(svc, [shift])[0], status=201)


@bp.put("/<int:shift_id>")
@requires_perms("rota.edit")
def update_shift(shift_id: int):
    data, version = _payload()
    repo = Repository()
    svc = ShiftService(repo)
    shift = svc.update_shift(shift_id, actor_user_id=current_actor(repo).user_id,
                             expected_version=version, **data)
    return ok(_rows(svc, [shift])[0])


@bp.delete("/<int:shift_id>")
@requires_perms("rota.edit")
def delete_shift(shift_id: int):
    ShiftService(Repository()).delete_shift(shift_id)
    return ok({"deleted": shift_id})
