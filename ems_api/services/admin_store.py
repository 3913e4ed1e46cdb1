"""
Credential store: Admin records.

Username and email are unique among *active* admins only, so a soft-deleted
admin's username can be registered again.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from flask import current_app

from ems_api.extensions import db
from ems_api.models.admin import Admin
from ems_api.common.errors import (
    DuplicateKey, NotFound, SelfDeletion, Unauthenticated, ValidationError,
)
from ems_api.common.fields import secret, text
from ems_api.common.paging import apply_search, paginate

log = logging.getLogger(__name__)


def _min_password_length() -> int:
    return current_app.config.get("MIN_PASSWORD_LENGTH", 6)


def _check_password_length(raw: str, label: str = "Password"):
    n = _min_password_length()
    if len(raw) < n:
        raise ValidationError(f"{label} must be at least {n} characters")


def _active():
    return Admin.query.filter(Admin.is_deleted.is_(False))


def find_active_by_username(username: str, exclude_id: int | None = None) -> Optional[Admin]:
    q = _active().filter(Admin.username == username)
    if exclude_id is not None:
        q = q.filter(Admin.id != exclude_id)
    return q.first()


def find_active_by_email(email: str, exclude_id: int | None = None) -> Optional[Admin]:
    q = _active().filter(Admin.email == text(email, "email").lower())
    if exclude_id is not None:
        q = q.filter(Admin.id != exclude_id)
    return q.first()


def find_by_id(admin_id: int) -> Optional[Admin]:
    return db.session.get(Admin, admin_id)


def find_active_by_id(admin_id: int) -> Optional[Admin]:
    a = find_by_id(admin_id)
    return a if a and not a.is_deleted else None


def get_active(admin_id: int) -> Admin:
    a = find_active_by_id(admin_id)
    if not a:
        raise NotFound("Admin not found")
    return a


def count_active() -> int:
    return _active().count()


def list_active(page: int, limit: int, search: str | None = None):
    q = apply_search(_active(), search, Admin.username, Admin.email, Admin.full_name)
    q = q.order_by(Admin.created_at.desc(), Admin.id.desc())
    return paginate(q, page, limit)


def create(username: str, password: str, email: str, full_name: str) -> Admin:
    username = text(username, "username")
    email = text(email, "email").lower()
    full_name = text(full_name, "fullName")
    password = secret(password)

    if not (username and password and email and full_name):
        raise ValidationError("username, password, email and fullName are required")
    _check_password_length(password)

    if find_active_by_username(username):
        raise DuplicateKey("Username already exists")
    if find_active_by_email(email):
        raise DuplicateKey("Email already exists")

    admin = Admin(username=username, email=email, full_name=full_name)
    admin.set_password(password)
    db.session.add(admin)
    db.session.flush()
    log.info("admin registered id=%s username=%s", admin.id, admin.username)
    return admin


def authenticate(username: str, password: str) -> Optional[Admin]:
    """Active admin whose password matches, else None. Callers must not reveal which check failed."""
    username = text(username, "username")
    password = secret(password)
    if not username or not password:
        return None
    admin = find_active_by_username(username)
    if not admin or not admin.check_password(password):
        return None
    return admin


def update_profile(admin_id: int, username: str, email: str, full_name: str) -> Admin:
    username = text(username, "username")
    email = text(email, "email").lower()
    full_name = text(full_name, "fullName")
    if not (username and email and full_name):
        raise ValidationError("username, email and fullName are required")

    admin = get_active(admin_id)
    if find_active_by_username(username, exclude_id=admin.id):
        raise DuplicateKey("Username already exists")
    if find_active_by_email(email, exclude_id=admin.id):
        raise DuplicateKey("Email already exists")

    admin.username = username
    admin.email = email
    admin.full_name = full_name
    admin.updated_at = datetime.utcnow()
    return admin


def change_password(admin: Admin, current: str, new: str) -> Admin:
    current = secret(current, "currentPassword")
    new = secret(new, "newPassword")
    if not current or not new:
        raise ValidationError("currentPassword and newPassword are required")
    _check_password_length(new, "New password")
    if not admin.check_password(current):
        raise Unauthenticated("Current password is incorrect")
    admin.set_password(new)
    admin.updated_at = datetime.utcnow()
    return admin


def soft_delete(admin_id: int, caller: Admin) -> Admin:
    if caller is not None and admin_id == caller.id:
        raise SelfDeletion("You cannot delete your own account")
    admin = get_active(admin_id)
    admin.soft_delete()
    log.info("admin id=%s soft-deleted by id=%s", admin.id, getattr(caller, "id", None))
    return admin
