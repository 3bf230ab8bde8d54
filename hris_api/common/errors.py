# hris_api/common/errors.py
import logging

from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from hris_api.common.http import fail

log = logging.getLogger(__name__)


class APIError(Exception):
    """Base error rendered as the failure envelope."""
    def __init__(self, code, message, status_code=400, payload=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.payload = payload


class NotFound(APIError):
    def __init__(self, message="Resource not found", payload=None):
        super().__init__("NOT_FOUND", message, 404, payload)


class Forbidden(APIError):
    def __init__(self, message="You are not allowed to perform this action", payload=None):
        super().__init__("FORBIDDEN", message, 403, payload)


class Conflict(APIError):
    def __init__(self, message="Conflict", payload=None):
        super().__init__("CONFLICT", message, 409, payload)


class ValidationFailed(APIError):
    """422 with per-field messages: ``{"field": ["msg", ...]}``."""
    def __init__(self, errors, message="The given data was invalid"):
        if isinstance(errors, str):
            errors = {"non_field": [errors]}
        super().__init__("VALIDATION_ERROR", message, 422, errors)


class PreconditionFailed(APIError):
    def __init__(self, message, code="PRECONDITION_FAILED", payload=None):
        super().__init__(code, message, 422, payload)


class ProfileUnavailable(PreconditionFailed):
    def __init__(self, message="Employee profile not yet available"):
        super().__init__(message, code="PROFILE_UNAVAILABLE")


def register_error_handlers(app):
    from hris_api.extensions import db

    @app.errorhandler(APIError)
    def _api_error(e: APIError):
        if isinstance(e, ValidationFailed):
            return fail(e.message, status=e.status_code, code=e.code, errors=e.payload)
        return fail(e.message, status=e.status_code, code=e.code, detail=e.payload)

    @app.errorhandler(IntegrityError)
    def _integrity(e: IntegrityError):
        # 409 for unique/FK violations
        db.session.rollback()
        log.warning("integrity error: %s", getattr(e, "orig", e))
        return fail("Duplicate or constraint violation", status=409, code="CONFLICT")

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(Exception)
    def _500(e: Exception):
        app.logger.exception(e)
        db.session.rollback()
        return fail("Internal server error", status=500)
