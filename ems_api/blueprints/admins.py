from flask import Blueprint

from ems_api.extensions import db
from ems_api.common.auth import admin_required
from ems_api.common.http import ok, json_body
from ems_api.common.paging import page_limit, parse_id, text_q
from ems_api.services import admin_store, reporting

bp = Blueprint("admins", __name__, url_prefix="/api/admin")


@bp.get("")
@admin_required
def list_admins(current_admin):
    page, limit = page_limit()
    items, pagination = admin_store.list_active(page, limit, text_q())
    return ok({"admins": [a.to_dict() for a in items], "pagination": pagination})


# registered before /<admin_id> so "stats" is never read as an id
@bp.get("/stats/overview")
@admin_required
def stats_overview(current_admin):
    return ok(reporting.system_overview())


@bp.get("/<admin_id>")
@admin_required
def get_admin(current_admin, admin_id):
    admin = admin_store.get_active(parse_id(admin_id, "admin id"))
    return ok(admin.to_dict())


@bp.put("/<admin_id>")
@admin_required
def update_admin(current_admin, admin_id):
    d = json_body()
    admin = admin_store.update_profile(
        parse_id(admin_id, "admin id"),
        username=d.get("username"),
        email=d.get("email"),
        full_name=d.get("fullName", d.get("full_name")),
    )
    db.session.commit()
    return ok(admin.to_dict(), message="Admin updated")


@bp.delete("/<admin_id>")
@admin_required
def delete_admin(current_admin, admin_id):
    admin_store.soft_delete(parse_id(admin_id, "admin id"), caller=current_admin)
    db.session.commit()
    return ok(None, message="Admin deleted")
