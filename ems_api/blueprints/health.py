from flask import Blueprint

from ems_api.common.http import ok

bp = Blueprint("health", __name__)


@bp.get("/")
def index():
    return ok({"service": "ems-api"}, message="Employee management API is running")


@bp.get("/api/health")
def health():
    return ok({"status": "ok"})
