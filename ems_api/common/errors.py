# ems_api/common/errors.py
from flask import current_app
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError

from ems_api.common.http import fail
from ems_api.extensions import db


class APIError(Exception):
    """Base error for anything a store, the coordinator or a route rejects."""
    status_code = 400
    code = "bad_request"

    def __init__(self, message, code=None, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload


class ValidationError(APIError):
    code = "validation_error"


class DuplicateKey(APIError):
    code = "duplicate_key"


class NotFound(APIError):
    status_code = 404
    code = "not_found"


class ReferenceViolation(APIError):
    code = "reference_violation"


class HasDependents(APIError):
    code = "has_dependents"


class IsDepartmentManager(APIError):
    code = "is_department_manager"


class SelfDeletion(APIError):
    code = "self_deletion"


class Unauthenticated(APIError):
    status_code = 401
    code = "unauthenticated"


class MalformedIdentifier(APIError):
    code = "malformed_identifier"


class InternalError(APIError):
    status_code = 500
    code = "internal"


def _rollback():
    try:
        db.session.rollback()
    except Exception:
        current_app.logger.exception("session rollback failed")


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def _api_error(e: APIError):
        _rollback()
        if e.status_code >= 500:
            app.logger.error("%s: %s", e.code, e.message)
        return fail(e.message, status=e.status_code, code=e.code, detail=e.payload)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        _rollback()
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(IntegrityError)
    def _integrity(e: IntegrityError):
        _rollback()
        app.logger.warning("integrity error: %s", getattr(e, "orig", e))
        return fail("Conflict / integrity error", status=409, code="constraint_error")

    @app.errorhandler(Exception)
    def _500(e: Exception):
        _rollback()
        app.logger.exception(e)
        return fail("Internal server error", status=500, code=InternalError.code)
