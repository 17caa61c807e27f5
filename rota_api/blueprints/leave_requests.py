from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from rota_api.common.auth import current_actor
from rota_api.common.errors import ValidationError
from rota_api.common.http import ok
from rota_api.common.params import arg_date, arg_int, as_int, body, parse_dt, require_fields
from rota_api.models.employee import Employee
from rota_api.models.leave import LeaveStatus, LeaveType
from rota_api.repository import Repository
from rota_api.services.leave_service import LeaveRequestService

bp = Blueprint("leave_requests", __name__, url_prefix="/api/v1/leave-requests")


def _rows(repo: Repository, items):
    employees = repo.by_ids(Employee, {lr.employee_id for lr in items})
    types = repo.by_ids(LeaveType, {lr.leave_type_id for lr in items})
    out = []
    for lr in items:
        emp = employees.get(lr.employee_id)
        lt = types.get(lr.leave_type_id)
        out.append({
            "id": lr.id,
            "employee_id": lr.employee_id,
            "employee_name": emp.full_name if emp else None,
            "leave_type_id": lr.leave_type_id,
            "leave_type_name": lt.name if lt else None,
            "start_at": lr.start_at,
            "end_at": lr.end_at,
            "reason": lr.reason,
            "status": lr.status,
            "requested_at": lr.requested_at,
            "approver_user_id": lr.approver_user_id,
            "approved_at": lr.approved_at,
            "approver_notes": lr.approver_notes,
            "version": lr.version,
        })
    return out


def _status_arg(raw):
    if raw in (None, ""):
        return None
    status = LeaveStatus.parse(raw)
    if status is None:
        raise ValidationError(f"Unknown leave status '{raw}'.", payload={"field": "status"})
    return status


@bp.get("")
@jwt_required()
def list_requests():
    repo = Repository()
    items = LeaveRequestService(repo).list_requests(
        current_actor(repo),
        employee_id=arg_int("employee_id"),
        status=_status_arg(request.args.get("status")),
        start_date=arg_date("start_date"),
        end_date=arg_date("end_date"),
        leave_type_id=arg_int("leave_type_id"),
        team_id=arg_int("team_id"),
    )
    return ok(_rows(repo, items), count=len(items))


@bp.get("/<int:request_id>")
@jwt_required()
def get_request(request_id: int):
    repo = Repository()
    lr = LeaveRequestService(repo).get_request(current_actor(repo), request_id)
    return ok(_rows(repo, [lr])[0])


@bp.post("")
@jwt_required()
def create_request():
    d = body()
    require_fields(d, "leave_type_id", "start_at", "end_at")
    repo = Repository()
    actor = current_actor(repo)
    # employees file for themselves unless an id is given
    employee_id = as_int(d.get("employee_id"), "employee_id") or actor.employee_id
    if employee_id is None:
        raise ValidationError("employee_id is required.", payload={"field": "employee_id"})

    lr, warnings = LeaveRequestService(repo).create_request(
        actor, employee_id,
        as_int(d["leave_type_id"], "leave_type_id"),
        parse_dt(d["start_at"], "start_at"),
        parse_dt(d["end_at"], "end_at"),
        d.get("reason"),
    )
    return ok(_rows(repo, [lr])[0], status=201, warnings=warnings)


@bp.put("/<int:request_id>")
@jwt_required()
def update_request(request_id: int):
    d = body()
    require_fields(d, "leave_type_id", "start_at", "end_at")
    repo = Repository()
    lr, warnings = LeaveRequestService(repo).update_request(
        current_actor(repo), request_id,
        as_int(d["leave_type_id"], "leave_type_id"),
        parse_dt(d["start_at"], "start_at"),
        parse_dt(d["end_at"], "end_at"),
        d.get("reason"),
    )
    return ok(_rows(repo, [lr])[0], warnings=warnings)


@bp.put("/<int:request_id>/status")
@jwt_required()
def update_status(request_id: int):
    d = body()
    require_fields(d, "status")
    repo = Repository()
    lr = LeaveRequestService(repo).update_status(
        current_actor(repo), request_id, _status_arg(d["status"]), d.get("approver_notes"),
    )
    return ok(_rows(repo, [lr])[0])


@bp.post("/<int:request_id>/cancel")
@jwt_required()
def cancel_request(request_id: int):
    repo = Repository()
    lr = LeaveRequestService(repo).cancel_request(current_actor(repo), request_id)
    return ok(_rows(repo, [lr])[0])
