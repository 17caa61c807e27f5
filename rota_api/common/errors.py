# rota_api/common/errors.py
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from rota_api.common.http import fail


class APIError(Exception):
    """Base for every failure the scheduling engine reports to its caller."""
    code = "API_ERROR"
    status_code = 400

    def __init__(self, message, code=None, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.payload = payload


class NotFound(APIError):
    code = "NOT_FOUND"
    status_code = 404


class InvalidReference(APIError):
    """A foreign key that does not resolve to an existing (or active) row."""
    code = "INVALID_REFERENCE"
    status_code = 422


class InvalidRange(APIError):
    code = "INVALID_RANGE"
    status_code = 422


class Conflict(APIError):
    """Double booking, or a concurrent write detected at commit."""
    code = "CONFLICT"
    status_code = 409


class InvalidStateTransition(APIError):
    code = "INVALID_STATE_TRANSITION"
    status_code = 409


class PermissionDenied(APIError):
    code = "PERMISSION_DENIED"
    status_code = 403


class StorageError(APIError):
    code = "STORAGE_ERROR"
    status_code = 500


class ValidationError(APIError):
    """Malformed request input (missing fields, unparsable dates)."""
    code = "VALIDATION_ERROR"
    status_code = 422


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def _api_error(e: APIError):
        if e.status_code >= 500:
            app.logger.error("%s: %s", e.code, e.message)
        return fail(e.message, status=e.status_code, code=e.code, detail=e.payload)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(IntegrityError)
    def _dup(e: IntegrityError):
        return fail("Duplicate or FK constraint failed", status=409, code="CONSTRAINT_ERROR")

    @app.errorhandler(Exception)
    def _500(e: Exception):
        app.logger.exception(e)
        return fail("Internal server error", status=500)
