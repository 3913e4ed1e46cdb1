from flask import Blueprint

from ems_api.extensions import db
from ems_api.common.auth import admin_required, issue_token
from ems_api.common.errors import Unauthenticated, ValidationError
from ems_api.common.fields import secret, text
from ems_api.common.http import ok, json_body
from ems_api.services import admin_store

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@bp.post("/register")
def register():
    d = json_body()
    admin = admin_store.create(
        username=d.get("username"),
        password=d.get("password"),
        email=d.get("email"),
        full_name=d.get("fullName", d.get("full_name")),
    )
    db.session.commit()
    return ok(admin.to_dict(), 201, message="Admin registered")


@bp.post("/login")
def login():
    d = json_body()
    username = text(d.get("username"), "username")
    password = secret(d.get("password"))
    if not username or not password:
        raise ValidationError("username and password are required")

    admin = admin_store.authenticate(username, password)
    if not admin:
        # same message whether the username exists or not
        raise Unauthenticated("Invalid username or password")

    return ok({"token": issue_token(admin), "admin": admin.brief()}, message="Login successful")


@bp.get("/me")
@admin_required
def me(current_admin):
    return ok(current_admin.to_dict())


@bp.put("/change-password")
@admin_required
def change_password(current_admin):
    d = json_body()
    admin_store.change_password(
        current_admin,
        d.get("currentPassword", d.get("current_password")),
        d.get("newPassword", d.get("new_password")),
    )
    db.session.commit()
    return ok(None, message="Password changed")
