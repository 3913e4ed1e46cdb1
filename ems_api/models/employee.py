from datetime import datetime, date

from ems_api.extensions import db

# wire values; "Probation" is what a new hire starts as
STATUS_ACTIVE = "Active"
STATUS_RESIGNED = "Resigned"
STATUS_ON_LEAVE = "OnLeave"
STATUS_PROBATION = "Probation"
EMPLOYEE_STATUSES = (STATUS_ACTIVE, STATUS_RESIGNED, STATUS_ON_LEAVE, STATUS_PROBATION)

_STATUS_LOOKUP = {s.lower(): s for s in EMPLOYEE_STATUSES}


def normalize_status(raw):
    """'on_leave', 'on-leave', 'On Leave', 'onleave' -> 'OnLeave'. Unknown -> None."""
    if raw is None:
        return None
    key = str(raw).strip().lower().replace("_", "").replace("-", "").replace(" ", "")
    return _STATUS_LOOKUP.get(key)


class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id", ondelete="RESTRICT"), nullable=False)
    supervisor_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("admins.id", ondelete="RESTRICT"), nullable=False)

    name          = db.Column(db.String(120), nullable=False)
    employee_code = db.Column(db.String(32), nullable=False)   # "employeeId" on the wire
    email         = db.Column(db.String(255), nullable=False)
    phone         = db.Column(db.String(32), nullable=True)
    position      = db.Column(db.String(120), nullable=False)
    salary        = db.Column(db.Float, nullable=True)
    hire_date     = db.Column(db.Date, nullable=False, default=date.today)
    status        = db.Column(db.String(16), nullable=False, default=STATUS_PROBATION)
    address       = db.Column(db.String(255), nullable=True)
    is_deleted    = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("salary IS NULL OR salary >= 0", name="ck_employee_salary_nonneg"),
        db.Index("ix_emp_code_deleted", "employee_code", "is_deleted"),
        db.Index("ix_emp_email_deleted", "email", "is_deleted"),
        db.Index("ix_emp_dept_deleted", "department_id", "is_deleted"),
        db.Index("ix_emp_supervisor_id", "supervisor_id"),
    )

    department = db.relationship("Department", foreign_keys=[department_id], lazy="joined")
    supervisor = db.relationship("Employee", remote_side=[id], lazy="joined")
    created_by = db.relationship("Admin", lazy="joined")

    def soft_delete(self):
        self.is_deleted = True
        self.updated_at = datetime.utcnow()

    def brief(self):
        return {
            "id": self.id,
            "name": self.name,
            "employeeId": self.employee_code,
            "email": self.email,
            "position": self.position,
            "phone": self.phone,
        }

    def to_dict(self):
        sup = self.supervisor if self.supervisor and not self.supervisor.is_deleted else None
        return {
            "id": self.id,
            "name": self.name,
            "employeeId": self.employee_code,
            "email": self.email,
            "phone": self.phone,
            "position": self.position,
            "salary": self.salary,
            "hireDate": self.hire_date.isoformat() if self.hire_date else None,
            "status": self.status,
            "address": self.address,
            "departmentId": self.department_id,
            "department": self.department.brief() if self.department else None,
            "supervisorId": self.supervisor_id,
            "supervisor": sup.brief() if sup else None,
            "createdBy": self.created_by.brief() if self.created_by else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
