# ems_api/common/auth.py
from __future__ import annotations

from datetime import timedelta
from functools import wraps

from flask import current_app, g
from flask_jwt_extended import create_access_token, get_jwt_identity, verify_jwt_in_request

from ems_api.common.errors import Unauthenticated
from ems_api.common.http import fail
from ems_api.extensions import db
from ems_api.models.admin import Admin


def issue_token(admin: Admin) -> str:
    """Signed access token carrying the admin id; lifetime from JWT_ACCESS_TOKEN_EXPIRES."""
    expires = current_app.config.get("JWT_ACCESS_TOKEN_EXPIRES", timedelta(hours=24))
    return create_access_token(
        identity=str(admin.id),
        additional_claims={"username": admin.username},
        expires_delta=expires,
    )


def _resolve_admin(identity) -> Admin | None:
    try:
        admin_id = int(identity)
    except (TypeError, ValueError):
        return None
    admin = db.session.get(Admin, admin_id)
    if not admin or admin.is_deleted:
        return None
    return admin


def admin_required(f):
    """
    Verify the bearer token and hand the resolved, non-deleted Admin to the view
    as its first argument. Also kept on flask.g.current_admin.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        verify_jwt_in_request()
        admin = _resolve_admin(get_jwt_identity())
        if admin is None:
            raise Unauthenticated("Invalid token or admin account no longer exists")
        g.current_admin = admin
        return f(admin, *args, **kwargs)
    return decorated


def register_jwt_handlers(jwt):
    """Every token failure answers 401 with the common error envelope."""

    @jwt.unauthorized_loader
    def _missing(reason):
        return fail("Access denied: missing or malformed Authorization header", status=401, code=Unauthenticated.code)

    @jwt.invalid_token_loader
    def _invalid(reason):
        return fail("Invalid authentication token", status=401, code=Unauthenticated.code)

    @jwt.expired_token_loader
    def _expired(jwt_header, jwt_payload):
        return fail("Authentication token has expired", status=401, code=Unauthenticated.code)

    @jwt.revoked_token_loader
    def _revoked(jwt_header, jwt_payload):
        return fail("Authentication token has been revoked", status=401, code=Unauthenticated.code)
