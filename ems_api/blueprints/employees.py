from flask import Blueprint, request

from ems_api.extensions import db
from ems_api.common.auth import admin_required
from ems_api.common.errors import ValidationError
from ems_api.common.http import ok, json_body, remap
from ems_api.common.paging import page_limit, parse_id, text_q
from ems_api.services import consistency, employee_store, reporting

bp = Blueprint("employees", __name__, url_prefix="/api/employees")

_ALIASES = {
    "name": ("name",),
    "employee_code": ("employeeId", "employee_id", "employeeCode", "employee_code"),
    "email": ("email",),
    "phone": ("phone",),
    "position": ("position",),
    "salary": ("salary",),
    "hire_date": ("hireDate", "hire_date"),
    "department_id": ("departmentId", "department_id"),
    "supervisor_id": ("supervisorId", "supervisor_id"),
    "status": ("status",),
    "address": ("address",),
}


def _payload():
    data = remap(json_body(), _ALIASES)
    if "department_id" in data:
        data["department_id"] = parse_id(data["department_id"], "departmentId")
    if "supervisor_id" in data:
        data["supervisor_id"] = parse_id(data["supervisor_id"], "supervisorId")
    return data


def _subordinate_row(e):
    return {
        "id": e.id,
        "name": e.name,
        "employeeId": e.employee_code,
        "position": e.position,
        "status": e.status,
        "hireDate": e.hire_date.isoformat() if e.hire_date else None,
        "department": e.department.brief() if e.department else None,
    }


# ---------- routes ----------

@bp.get("")
@admin_required
def list_employees(current_admin):
    page, limit = page_limit()
    dept_id = parse_id(request.args.get("department", request.args.get("departmentId")), "department")
    status = (request.args.get("status") or "").strip() or None
    items, pagination = employee_store.list_active(
        page, limit, text_q(), department_id=dept_id, status=status,
    )
    return ok({"employees": [e.to_dict() for e in items], "pagination": pagination})


# static paths first so they never hit /<emp_id>
@bp.get("/stats/overview")
@admin_required
def stats_overview(current_admin):
    return ok(reporting.employee_stats())


@bp.put("/batch/transfer")
@admin_required
def batch_transfer(current_admin):
    d = json_body()
    raw_ids = d.get("employeeIds", d.get("employee_ids"))
    if not isinstance(raw_ids, list) or not raw_ids:
        raise ValidationError("employeeIds must be a non-empty list")
    raw_target = d.get("targetDepartmentId", d.get("target_department_id"))
    if raw_target in (None, ""):
        raise ValidationError("targetDepartmentId is required")

    ids = [parse_id(x, "employeeIds") for x in raw_ids]
    target_id = parse_id(raw_target, "targetDepartmentId")

    target, moved = consistency.transfer_employees(ids, target_id)
    db.session.commit()

    moved_rows = [
        {
            "id": e.id,
            "name": e.name,
            "employeeId": e.employee_code,
            "position": e.position,
            "department": target.brief(),
        }
        for e in moved
    ]
    return ok(
        {
            "transferredCount": len(moved),
            "targetDepartment": {"id": target.id, "name": target.name, "code": target.code},
            "transferredEmployees": moved_rows,
        },
        message=f"Transferred {len(moved)} employee(s) to {target.name}",
    )


@bp.get("/<emp_id>")
@admin_required
def get_employee(current_admin, emp_id):
    emp = employee_store.get_active(parse_id(emp_id, "employee id"))
    subs = employee_store.list_active_by_supervisor(emp.id)
    return ok({"employee": emp.to_dict(), "subordinates": [_subordinate_row(s) for s in subs]})


@bp.post("")
@admin_required
def create_employee(current_admin):
    emp = consistency.create_employee(_payload(), created_by=current_admin)
    db.session.commit()
    return ok(emp.to_dict(), 201, message="Employee created")


@bp.put("/<emp_id>")
@admin_required
def update_employee(current_admin, emp_id):
    emp = consistency.update_employee(parse_id(emp_id, "employee id"), _payload())
    db.session.commit()
    return ok(emp.to_dict(), message="Employee updated")


@bp.delete("/<emp_id>")
@admin_required
def delete_employee(current_admin, emp_id):
    consistency.delete_employee(parse_id(emp_id, "employee id"))
    db.session.commit()
    return ok(None, message="Employee deleted")
