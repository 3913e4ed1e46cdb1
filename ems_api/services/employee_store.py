from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import datetime, date
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import update as sa_update

from ems_api.extensions import db
from ems_api.models.department import Department
from ems_api.models.employee import Employee, EMPLOYEE_STATUSES, STATUS_PROBATION, normalize_status
from ems_api.common.errors import (
    DuplicateKey, HasDependents, IsDepartmentManager, NotFound, ReferenceViolation, ValidationError,
)
from ems_api.common.fields import text
from ems_api.common.paging import apply_search, paginate
from ems_api.services import department_store

log = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "employee_code", "email", "position", "department_id")


# ---------- field coercion ----------

def parse_date(val):
    if val in (None, ""):
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    s = str(val).strip()
    if "T" in s:
        s = s.split("T", 1)[0]
    for fmt in ("%Y-%m-%d", "%d-%m-%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            pass
    raise ValidationError("hireDate must be a date (YYYY-MM-DD)")


def parse_salary(val):
    if val in (None, ""):
        return None
    if isinstance(val, bool):
        raise ValidationError("salary must be a number")
    try:
        out = float(val)
    except (TypeError, ValueError):
        raise ValidationError("salary must be a number")
    if not math.isfinite(out):
        raise ValidationError("salary must be a finite number")
    if out < 0:
        raise ValidationError("salary cannot be negative")
    return out


def parse_status(val, default=STATUS_PROBATION):
    if val in (None, ""):
        return default
    out = normalize_status(val)
    if not out:
        raise ValidationError(f"status must be one of: {', '.join(EMPLOYEE_STATUSES)}")
    return out



# ---------- lookups ----------

def _active():
    return Employee.query.filter(Employee.is_deleted.is_(False))


def find_active_by_id(emp_id: int) -> Optional[Employee]:
    e = db.session.get(Employee, emp_id)
    return e if e and not e.is_deleted else None


def get_active(emp_id: int) -> Employee:
    e = find_active_by_id(emp_id)
    if not e:
        raise NotFound("Employee not found")
    return e


def find_active_by_employee_code(code: str, exclude_id: int | None = None) -> Optional[Employee]:
    q = _active().filter(Employee.employee_code == text(code))
    if exclude_id is not None:
        q = q.filter(Employee.id != exclude_id)
    return q.first()


def find_active_by_email(email: str, exclude_id: int | None = None) -> Optional[Employee]:
    q = _active().filter(Employee.email == text(email).lower())
    if exclude_id is not None:
        q = q.filter(Employee.id != exclude_id)
    return q.first()


def count_active() -> int:
    return _active().count()


def count_active_by_supervisor(emp_id: int) -> int:
    return _active().filter(Employee.supervisor_id == emp_id).count()


def list_active_by_supervisor(emp_id: int) -> List[Employee]:
    return _active().filter(Employee.supervisor_id == emp_id).order_by(Employee.created_at.desc()).all()


def list_active_by_department(dept_id: int) -> List[Employee]:
    return _active().filter(Employee.department_id == dept_id).order_by(Employee.created_at.desc()).all()


def find_managed_department(emp_id: int) -> Optional[Department]:
    return Department.query.filter(
        Department.manager_id == emp_id, Department.is_deleted.is_(False)
    ).first()


def list_active(page: int, limit: int, search: str | None = None,
                department_id: int | None = None, status: str | None = None):
    q = _active()
    if department_id:
        q = q.filter(Employee.department_id == department_id)
    if status:
        q = q.filter(Employee.status == parse_status(status))
    q = apply_search(
        q, search,
        Employee.name, Employee.employee_code, Employee.email, Employee.phone, Employee.position,
    )
    q = q.order_by(Employee.created_at.desc(), Employee.id.desc())
    return paginate(q, page, limit)


# ---------- reference checks ----------

def _resolve_department(dept_id) -> Department:
    dept = department_store.find_active_by_id(dept_id) if dept_id else None
    if not dept:
        raise ReferenceViolation("The specified department does not exist")
    return dept


def _resolve_supervisor(sup_id: int, dept_id: int, emp_id: int | None = None) -> Employee:
    if emp_id is not None and sup_id == emp_id:
        raise ReferenceViolation("An employee cannot be their own supervisor")
    sup = find_active_by_id(sup_id)
    if not sup:
        raise ReferenceViolation("The specified supervisor does not exist")
    if sup.department_id != dept_id:
        raise ReferenceViolation("Supervisor must belong to the same department")
    return sup


# ---------- writes ----------

def create(data: dict, created_by) -> Employee:
    missing = [k for k in REQUIRED_FIELDS if data.get(k) in (None, "") or (isinstance(data.get(k), str) and not data[k].strip())]
    if missing:
        raise ValidationError("name, employeeId, email, position and departmentId are required")

    code = text(data["employee_code"])
    email = text(data["email"]).lower()

    if find_active_by_employee_code(code):
        raise DuplicateKey("Employee ID already exists")
    if find_active_by_email(email):
        raise DuplicateKey("Email already exists")

    dept = _resolve_department(data["department_id"])
    sup_id = data.get("supervisor_id")
    if sup_id:
        _resolve_supervisor(sup_id, dept.id)

    emp = Employee(
        name=text(data["name"]),
        employee_code=code,
        email=email,
        phone=text(data.get("phone")) or None,
        position=text(data["position"]),
        salary=parse_salary(data.get("salary")),
        hire_date=parse_date(data.get("hire_date")) or date.today(),
        department_id=dept.id,
        supervisor_id=sup_id or None,
        status=parse_status(data.get("status")),
        address=text(data.get("address")) or None,
        created_by_id=created_by.id,
    )
    db.session.add(emp)
    db.session.flush()
    log.info("employee created id=%s code=%s dept=%s", emp.id, emp.employee_code, emp.department_id)
    return emp


def update(emp_id: int, data: dict) -> Tuple[Employee, int]:
    """
    Partial update; only keys present in `data` change.
    Returns (employee, previous department id).

    Moving to another department without naming a supervisor clears the
    supervisor, the same way a batch transfer does.
    """
    emp = get_active(emp_id)
    old_dept_id = emp.department_id

    for key, label in (("name", "name"), ("position", "position")):
        if key in data:
            val = text(data.get(key))
            if not val:
                raise ValidationError(f"{label} cannot be empty")
            setattr(emp, key, val)

    if "employee_code" in data:
        code = text(data.get("employee_code"))
        if not code:
            raise ValidationError("employeeId cannot be empty")
        if find_active_by_employee_code(code, exclude_id=emp.id):
            raise DuplicateKey("Employee ID already exists")
        emp.employee_code = code

    if "email" in data:
        email = text(data.get("email")).lower()
        if not email:
            raise ValidationError("email cannot be empty")
        if find_active_by_email(email, exclude_id=emp.id):
            raise DuplicateKey("Email already exists")
        emp.email = email

    new_dept_id = old_dept_id
    if "department_id" in data:
        new_dept_id = _resolve_department(data.get("department_id")).id

    if "supervisor_id" in data:
        sup_id = data.get("supervisor_id")
        if sup_id:
            _resolve_supervisor(sup_id, new_dept_id, emp_id=emp.id)
        emp.supervisor_id = sup_id or None
    elif new_dept_id != old_dept_id:
        emp.supervisor_id = None

    emp.department_id = new_dept_id

    if "salary" in data:
        emp.salary = parse_salary(data.get("salary"))
    if "hire_date" in data:
        emp.hire_date = parse_date(data.get("hire_date")) or emp.hire_date
    if "status" in data:
        emp.status = parse_status(data.get("status"), default=emp.status)
    for key in ("phone", "address"):
        if key in data:
            setattr(emp, key, text(data.get(key)) or None)

    emp.updated_at = datetime.utcnow()
    db.session.flush()
    return emp, old_dept_id


def soft_delete(emp_id: int) -> Employee:
    emp = get_active(emp_id)

    subordinates = count_active_by_supervisor(emp.id)
    if subordinates > 0:
        raise HasDependents(
            f"Employee still supervises {subordinates} employee(s); reassign them first",
            payload={"subordinateCount": subordinates},
        )

    managed = find_managed_department(emp.id)
    if managed:
        raise IsDepartmentManager(
            f"Employee is the manager of department {managed.name}; change the manager first",
            payload={"departmentId": managed.id, "departmentName": managed.name},
        )

    emp.soft_delete()
    log.info("employee id=%s soft-deleted", emp.id)
    return emp


def bulk_reassign_department(ids: Iterable[int], target_department_id: int,
                             clear_supervisor: bool = False) -> Tuple[List[Employee], Counter]:
    """
    Move every active employee in `ids` to the target department.
    Returns (moved employees, Counter of source department id -> moved count).
    """
    ids = list(dict.fromkeys(ids))
    employees = _active().filter(Employee.id.in_(ids)).all() if ids else []
    if not employees:
        raise ValidationError("No valid employees found")

    per_source = Counter(e.department_id for e in employees)
    values = {"department_id": target_department_id, "updated_at": datetime.utcnow()}
    if clear_supervisor:
        values["supervisor_id"] = None

    db.session.execute(
        sa_update(Employee)
        .where(Employee.id.in_([e.id for e in employees]), Employee.is_deleted.is_(False))
        .values(**values)
        .execution_options(synchronize_session="fetch")
    )
    return employees, per_source
