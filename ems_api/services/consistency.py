"""
Consistency coordinator.

`Department.employee_count` is a cache of the number of active employees that
reference a department. Every write path that can change that number goes
through this module:

  * employee created            -> +1 on its department
  * employee moved              -> -1 old department, +1 new department
  * employee soft-deleted       -> -1 on its department
  * batch transfer              -> -n per source department, +total on target,
                                   supervisor cleared on every moved employee

Each bump is an atomic ``UPDATE ... SET employee_count = employee_count + n``
issued in the request's session, so it commits (or rolls back) with the
entity write that caused it. Department reads additionally reconcile the
cached value against a live count and overwrite it when they disagree, which
repairs drift from concurrent transfers touching the same departments.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from sqlalchemy import func

from ems_api.common.errors import ReferenceViolation
from ems_api.extensions import db
from ems_api.models.department import Department
from ems_api.models.employee import Employee
from ems_api.services import department_store, employee_store

log = logging.getLogger(__name__)


# ---------- hooks ----------

def on_employee_created(emp: Employee) -> None:
    department_store.increment_employee_count(emp.department_id, 1)


def on_employee_moved(old_dept_id: int, new_dept_id: int) -> None:
    if old_dept_id == new_dept_id:
        return
    department_store.increment_employee_count(old_dept_id, -1)
    department_store.increment_employee_count(new_dept_id, 1)


def on_employee_deleted(emp: Employee) -> None:
    department_store.increment_employee_count(emp.department_id, -1)


# ---------- coordinated operations ----------

def create_employee(data: dict, created_by) -> Employee:
    emp = employee_store.create(data, created_by)
    on_employee_created(emp)
    return emp


def update_employee(emp_id: int, data: dict) -> Employee:
    emp, old_dept_id = employee_store.update(emp_id, data)
    on_employee_moved(old_dept_id, emp.department_id)
    return emp


def delete_employee(emp_id: int) -> Employee:
    emp = employee_store.soft_delete(emp_id)
    on_employee_deleted(emp)
    return emp


def transfer_employees(ids: Iterable[int], target_department_id: int):
    """
    Batch move to `target_department_id`.
    Returns (target department, moved employees).
    """
    target = department_store.find_active_by_id(target_department_id)
    if not target:
        raise ReferenceViolation("Target department does not exist")

    employees, per_source = employee_store.bulk_reassign_department(
        ids, target.id, clear_supervisor=True
    )
    for dept_id, n in per_source.items():
        department_store.increment_employee_count(dept_id, -n)
    department_store.increment_employee_count(target.id, len(employees))

    log.info(
        "transferred %d employee(s) to department id=%s (sources: %s)",
        len(employees), target.id, dict(per_source),
    )
    return target, employees


# ---------- reconciliation ----------

def live_counts(dept_ids: Iterable[int]) -> Dict[int, int]:
    """{department id: active employee count} for the given ids (missing -> 0)."""
    ids = list(dept_ids)
    if not ids:
        return {}
    rows = (
        db.session.query(Employee.department_id, func.count(Employee.id))
        .filter(Employee.department_id.in_(ids), Employee.is_deleted.is_(False))
        .group_by(Employee.department_id)
        .all()
    )
    out = {i: 0 for i in ids}
    out.update({dept_id: n for dept_id, n in rows})
    return out


def reconcile_departments(depts: List[Department]) -> int:
    """Overwrite stale counters in place. Returns how many were corrected."""
    counts = live_counts(d.id for d in depts)
    fixed = 0
    for d in depts:
        live = counts.get(d.id, 0)
        if d.employee_count != live:
            log.warning(
                "department id=%s employee_count drift: stored=%s live=%s",
                d.id, d.employee_count, live,
            )
            d.employee_count = live
            fixed += 1
    return fixed


def reconcile_department(dept: Department) -> bool:
    return reconcile_departments([dept]) > 0


def reconcile_all() -> int:
    depts = Department.query.filter(Department.is_deleted.is_(False)).all()
    return reconcile_departments(depts)
