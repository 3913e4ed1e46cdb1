from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy import update as sa_update

from ems_api.extensions import db
from ems_api.models.department import Department
from ems_api.models.employee import Employee
from ems_api.common.errors import (
    DuplicateKey, HasDependents, NotFound, ReferenceViolation, ValidationError,
)
from ems_api.common.fields import text
from ems_api.common.paging import apply_search, paginate

log = logging.getLogger(__name__)


def _active():
    return Department.query.filter(Department.is_deleted.is_(False))


def live_employee_count(dept_id: int) -> int:
    return Employee.query.filter(
        Employee.department_id == dept_id, Employee.is_deleted.is_(False)
    ).count()


def find_active_by_name(name: str, exclude_id: int | None = None) -> Optional[Department]:
    q = _active().filter(Department.name == text(name, "name"))
    if exclude_id is not None:
        q = q.filter(Department.id != exclude_id)
    return q.first()


def find_active_by_code(code: str, exclude_id: int | None = None) -> Optional[Department]:
    # codes are stored upper-case; compare the same way
    q = _active().filter(func.upper(Department.code) == text(code, "code").upper())
    if exclude_id is not None:
        q = q.filter(Department.id != exclude_id)
    return q.first()


def find_by_id(dept_id: int) -> Optional[Department]:
    return db.session.get(Department, dept_id)


def find_active_by_id(dept_id: int) -> Optional[Department]:
    d = find_by_id(dept_id)
    return d if d and not d.is_deleted else None


def get_active(dept_id: int) -> Department:
    d = find_active_by_id(dept_id)
    if not d:
        raise NotFound("Department not found")
    return d


def count_active() -> int:
    return _active().count()


def list_active(page: int, limit: int, search: str | None = None):
    q = apply_search(
        _active(), search,
        Department.name, Department.code, Department.description, Department.location,
    )
    q = q.order_by(Department.created_at.desc(), Department.id.desc())
    return paginate(q, page, limit)


def _resolve_manager(manager_id: int | None) -> int | None:
    if manager_id is None:
        return None
    mgr = Employee.query.filter(Employee.id == manager_id, Employee.is_deleted.is_(False)).first()
    if not mgr:
        raise ReferenceViolation("The specified department manager does not exist")
    return mgr.id


def _check_unique(name: str, code: str, exclude_id: int | None = None):
    if find_active_by_name(name, exclude_id=exclude_id):
        raise DuplicateKey("Department name already exists")
    if find_active_by_code(code, exclude_id=exclude_id):
        raise DuplicateKey("Department code already exists")


def create(data: dict, created_by) -> Department:
    """
    data keys: name, code, description, location, phone, manager_id (already parsed).
    """
    name = text(data.get("name"), "name")
    code = text(data.get("code"), "code").upper()
    if not name or not code:
        raise ValidationError("Department name and code are required")

    _check_unique(name, code)
    manager_id = _resolve_manager(data.get("manager_id"))

    dept = Department(
        name=name,
        code=code,
        description=text(data.get("description"), "description") or None,
        location=text(data.get("location"), "location") or None,
        phone=text(data.get("phone"), "phone") or None,
        manager_id=manager_id,
        employee_count=0,
        created_by_id=created_by.id,
    )
    db.session.add(dept)
    db.session.flush()
    log.info("department created id=%s code=%s", dept.id, dept.code)
    return dept


def update(dept_id: int, data: dict) -> Department:
    dept = get_active(dept_id)

    name = dept.name
    code = dept.code
    if "name" in data:
        name = text(data.get("name"), "name")
        if not name:
            raise ValidationError("Department name cannot be empty")
    if "code" in data:
        code = text(data.get("code"), "code").upper()
        if not code:
            raise ValidationError("Department code cannot be empty")

    _check_unique(name, code, exclude_id=dept.id)

    if "manager_id" in data:
        dept.manager_id = _resolve_manager(data.get("manager_id"))

    dept.name = name
    dept.code = code
    for key in ("description", "location", "phone"):
        if key in data:
            setattr(dept, key, text(data.get(key), key) or None)
    dept.updated_at = datetime.utcnow()
    return dept


def soft_delete(dept_id: int) -> Department:
    dept = get_active(dept_id)
    # the cached counter may be stale; only the live count decides
    live = live_employee_count(dept.id)
    if live > 0:
        raise HasDependents(
            f"Department still has {live} employee(s); transfer or delete them first",
            payload={"employeeCount": live},
        )
    dept.soft_delete()
    dept.employee_count = 0
    log.info("department id=%s soft-deleted", dept.id)
    return dept


def increment_employee_count(dept_id: int, delta: int) -> None:
    """Atomic counter bump, clamped at zero."""
    if not delta:
        return
    new_value = Department.employee_count + delta
    db.session.execute(
        sa_update(Department)
        .where(Department.id == dept_id)
        .values(employee_count=case((new_value < 0, 0), else_=new_value))
        .execution_options(synchronize_session="fetch")
    )
    log.debug("department id=%s employee_count %+d", dept_id, delta)
