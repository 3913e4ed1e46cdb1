from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

from ems_api.extensions import db


class Admin(db.Model):
    __tablename__ = "admins"

    id            = db.Column(db.Integer, primary_key=True)
    # unique among non-deleted rows only; enforced in services.admin_store
    username      = db.Column(db.String(80), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    email         = db.Column(db.String(255), nullable=False)
    full_name     = db.Column(db.String(255), nullable=False)
    is_deleted    = db.Column(db.Boolean, default=False, nullable=False)
    created_at    = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at    = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_admin_username_deleted", "username", "is_deleted"),
        db.Index("ix_admin_email_deleted", "email", "is_deleted"),
    )

    # --- helpers ---
    def set_password(self, raw: str):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        return check_password_hash(self.password_hash, raw)

    def soft_delete(self):
        self.is_deleted = True
        self.updated_at = datetime.utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "fullName": self.full_name,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def brief(self):
        return {"id": self.id, "username": self.username, "fullName": self.full_name, "email": self.email}
