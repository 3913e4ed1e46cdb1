from datetime import datetime

from ems_api.extensions import db


class Department(db.Model):
    __tablename__ = "departments"

    id          = db.Column(db.Integer, primary_key=True)
    name        = db.Column(db.String(120), nullable=False)
    code        = db.Column(db.String(32), nullable=False)      # stored upper-case
    description = db.Column(db.Text, nullable=True)
    manager_id  = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL", use_alter=True), nullable=True)
    location    = db.Column(db.String(255), nullable=True)
    phone       = db.Column(db.String(32), nullable=True)
    # cache of active employees referencing this department, see services.consistency
    employee_count = db.Column(db.Integer, default=0, nullable=False)
    is_deleted  = db.Column(db.Boolean, default=False, nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey("admins.id", ondelete="RESTRICT"), nullable=False)
    created_at  = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at  = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("employee_count >= 0", name="ck_department_employee_count_nonneg"),
        db.Index("ix_department_name_deleted", "name", "is_deleted"),
        db.Index("ix_department_code_deleted", "code", "is_deleted"),
        db.Index("ix_department_manager_id", "manager_id"),
    )

    manager    = db.relationship("Employee", foreign_keys=[manager_id], lazy="joined", post_update=True)
    created_by = db.relationship("Admin", lazy="joined")

    def soft_delete(self):
        self.is_deleted = True
        self.updated_at = datetime.utcnow()

    def brief(self):
        return {"id": self.id, "name": self.name, "code": self.code, "location": self.location}

    def to_dict(self):
        m = self.manager if self.manager and not self.manager.is_deleted else None
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "location": self.location,
            "phone": self.phone,
            "employeeCount": self.employee_count,
            "managerId": self.manager_id,
            "manager": m.brief() if m else None,
            "createdBy": self.created_by.brief() if self.created_by else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
