"""
Reporting engine: read-only aggregates over active records.

Nothing here writes; in particular department counters are never reconciled
from this module (department reads in services.consistency do that).
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from flask import current_app
from sqlalchemy import case, desc, extract, func

from ems_api.extensions import db
from ems_api.models.admin import Admin
from ems_api.models.department import Department
from ems_api.models.employee import (
    Employee, STATUS_ACTIVE, STATUS_ON_LEAVE, STATUS_PROBATION, STATUS_RESIGNED,
)

# lower edges; the last bucket is open-ended
SALARY_BOUNDARIES = (0, 5000, 10000, 15000, 20000, 30000, 50000)

_STATUS_KEYS = {
    STATUS_ACTIVE: "active",
    STATUS_ON_LEAVE: "onLeave",
    STATUS_PROBATION: "probation",
    STATUS_RESIGNED: "resigned",
}


def _round(v) -> int:
    return int(round(float(v))) if v is not None else 0


def _num(v):
    if v is None:
        return 0
    f = float(v)
    return int(f) if f.is_integer() else f


def _now():
    return datetime.utcnow().isoformat()


def _active_employees():
    return Employee.query.filter(Employee.is_deleted.is_(False))


def system_overview() -> dict:
    return {
        "totalAdmins": Admin.query.filter(Admin.is_deleted.is_(False)).count(),
        "totalDepartments": Department.query.filter(Department.is_deleted.is_(False)).count(),
        "totalEmployees": _active_employees().count(),
        "generatedAt": _now(),
    }


def department_stats(dept: Department, today: Optional[date] = None) -> dict:
    today = today or date.today()
    recent_days = current_app.config.get("RECENT_HIRE_DAYS", 30)

    base = [Employee.is_deleted.is_(False), Employee.department_id == dept.id]

    total = db.session.query(func.count(Employee.id)).filter(*base).scalar() or 0

    by_status = {key: 0 for key in _STATUS_KEYS.values()}
    rows = (
        db.session.query(Employee.status, func.count(Employee.id))
        .filter(*base)
        .group_by(Employee.status)
        .all()
    )
    for status, n in rows:
        key = _STATUS_KEYS.get(status)
        if key:
            by_status[key] = n

    avg_salary = (
        db.session.query(func.avg(Employee.salary))
        .filter(*base, Employee.salary.isnot(None))
        .scalar()
    )

    since = today - timedelta(days=recent_days)
    recent = (
        Employee.query.filter(*base, Employee.hire_date >= since)
        .order_by(Employee.hire_date.desc())
        .all()
    )

    return {
        "departmentInfo": {"id": dept.id, "name": dept.name, "code": dept.code},
        "statistics": {
            "totalEmployees": total,
            "employeesByStatus": by_status,
            "averageSalary": _round(avg_salary),
            "recentHires": {
                "count": len(recent),
                "employees": [
                    {
                        "id": e.id,
                        "name": e.name,
                        "employeeId": e.employee_code,
                        "position": e.position,
                        "hireDate": e.hire_date.isoformat() if e.hire_date else None,
                    }
                    for e in recent
                ],
            },
        },
        "generatedAt": _now(),
    }


def _salary_bucket_expr():
    whens = [
        (Employee.salary < upper, idx)
        for idx, upper in enumerate(SALARY_BOUNDARIES[1:])
    ]
    return case(*whens, else_=len(SALARY_BOUNDARIES) - 1)


def salary_distribution() -> list:
    # bucket in a subquery so GROUP BY names a column, not a parametrized CASE
    sub = (
        db.session.query(_salary_bucket_expr().label("bucket"), Employee.salary.label("salary"))
        .filter(Employee.is_deleted.is_(False), Employee.salary.isnot(None))
        .subquery()
    )
    rows = (
        db.session.query(sub.c.bucket, func.count(), func.avg(sub.c.salary))
        .group_by(sub.c.bucket)
        .all()
    )
    found = {int(idx): (n, avg) for idx, n, avg in rows}

    out = []
    for idx, lower in enumerate(SALARY_BOUNDARIES):
        upper = SALARY_BOUNDARIES[idx + 1] if idx + 1 < len(SALARY_BOUNDARIES) else None
        n, avg = found.get(idx, (0, None))
        out.append({
            "min": lower,
            "max": upper,
            "label": f"{lower}-{upper}" if upper is not None else f"{lower}+",
            "count": n,
            "avgSalary": _round(avg),
        })
    return out


def hire_trend(today: Optional[date] = None) -> list:
    today = today or date.today()
    days = current_app.config.get("HIRE_TREND_DAYS", 90)
    since = today - timedelta(days=days)

    year = extract("year", Employee.hire_date).label("year")
    month = extract("month", Employee.hire_date).label("month")
    rows = (
        db.session.query(year, month, func.count(Employee.id))
        .filter(Employee.is_deleted.is_(False), Employee.hire_date >= since)
        .group_by(year, month)
        .order_by(year, month)
        .all()
    )
    return [{"year": int(y), "month": int(m), "count": n} for y, m, n in rows]


def employee_stats(today: Optional[date] = None) -> dict:
    total, avg_salary, max_salary, min_salary = (
        db.session.query(
            func.count(Employee.id),
            func.avg(Employee.salary),
            func.max(Employee.salary),
            func.min(Employee.salary),
        )
        .filter(Employee.is_deleted.is_(False))
        .one()
    )

    cnt = func.count(Employee.id)
    status_rows = (
        db.session.query(Employee.status, cnt)
        .filter(Employee.is_deleted.is_(False))
        .group_by(Employee.status)
        .order_by(desc(cnt), Employee.status)
        .all()
    )

    dept_rows = (
        db.session.query(Department.id, Department.name, Department.code, cnt, func.avg(Employee.salary))
        .select_from(Employee)
        .join(Department, Employee.department_id == Department.id)
        .filter(Employee.is_deleted.is_(False))
        .group_by(Department.id, Department.name, Department.code)
        .order_by(desc(cnt), Department.name)
        .all()
    )

    return {
        "overview": {
            "totalEmployees": total or 0,
            "averageSalary": _round(avg_salary),
            "maxSalary": _num(max_salary),
            "minSalary": _num(min_salary),
        },
        "statusDistribution": [{"status": s, "count": n} for s, n in status_rows],
        "departmentDistribution": [
            {
                "departmentId": d_id,
                "departmentName": name,
                "departmentCode": code,
                "employeeCount": n,
                "avgSalary": _round(avg),
            }
            for d_id, name, code, n, avg in dept_rows
        ],
        "salaryDistribution": salary_distribution(),
        "recentHires": hire_trend(today),
        "generatedAt": _now(),
    }
