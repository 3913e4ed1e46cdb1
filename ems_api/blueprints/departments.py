from flask import Blueprint

from ems_api.extensions import db
from ems_api.common.auth import admin_required
from ems_api.common.http import ok, json_body, remap
from ems_api.common.paging import page_limit, parse_id, text_q
from ems_api.services import consistency, department_store, employee_store, reporting

bp = Blueprint("departments", __name__, url_prefix="/api/departments")

_ALIASES = {
    "name": ("name",),
    "code": ("code",),
    "description": ("description",),
    "location": ("location",),
    "phone": ("phone",),
    "manager_id": ("managerId", "manager_id"),
}


def _payload():
    data = remap(json_body(), _ALIASES)
    if "manager_id" in data:
        data["manager_id"] = parse_id(data["manager_id"], "managerId")
    return data


@bp.get("")
@admin_required
def list_departments(current_admin):
    page, limit = page_limit()
    items, pagination = department_store.list_active(page, limit, text_q())
    # counters are a cache; repair any drift before answering
    if consistency.reconcile_departments(items):
        db.session.commit()
    return ok({"departments": [d.to_dict() for d in items], "pagination": pagination})


@bp.get("/<dept_id>")
@admin_required
def get_department(current_admin, dept_id):
    dept = department_store.get_active(parse_id(dept_id, "department id"))
    employees = employee_store.list_active_by_department(dept.id)
    if consistency.reconcile_department(dept):
        db.session.commit()
    return ok({
        "department": dept.to_dict(),
        "employees": [e.to_dict() for e in employees],
    })


@bp.post("")
@admin_required
def create_department(current_admin):
    dept = department_store.create(_payload(), created_by=current_admin)
    db.session.commit()
    return ok(dept.to_dict(), 201, message="Department created")


@bp.put("/<dept_id>")
@admin_required
def update_department(current_admin, dept_id):
    dept = department_store.update(parse_id(dept_id, "department id"), _payload())
    db.session.commit()
    return ok(dept.to_dict(), message="Department updated")


@bp.delete("/<dept_id>")
@admin_required
def delete_department(current_admin, dept_id):
    department_store.soft_delete(parse_id(dept_id, "department id"))
    db.session.commit()
    return ok(None, message="Department deleted")


@bp.get("/<dept_id>/stats")
@admin_required
def department_stats(current_admin, dept_id):
    dept = department_store.get_active(parse_id(dept_id, "department id"))
    return ok(reporting.department_stats(dept))
