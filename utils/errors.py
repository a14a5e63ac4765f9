import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

from models import db

log = structlog.getLogger()


class Error(Exception):
    """Base API error; rendered as {"error": message, ...} with status_code."""

    status_code = 400
    default_message = "Bad request"

    def __init__(self, message=None, details=None):
        super().__init__(message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self):
        out = {"error": self.message}
        if self.details:
            out["details"] = self.details
        return out


class ValidationError(Error):
    """Error for when there's issues related to validation"""
    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(Error):
    """Error for when there's issues related to authentication"""
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(Error):
    """Error for when there's issues related to authorization"""
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(Error):
    status_code = 404
    default_message = "Not found"


class ConflictError(Error):
    status_code = 409
    default_message = "Conflict"


class UpstreamError(Error):
    """A dependency (mail server, object storage, payment provider) failed."""
    status_code = 502
    default_message = "Upstream service unavailable"


class RateLimitError(Error):
    status_code = 429
    default_message = "Too many requests"

    def __init__(self, message=None, retry_after_seconds=0, details=None):
        super().__init__(message, details)
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self):
        out = super().to_dict()
        out["retry_after_seconds"] = self.retry_after_seconds
        return out


class AccountLockedError(RateLimitError):
    default_message = "Account temporarily locked. Try again later."


def handle_error(error):
    db.session.rollback()
    response = jsonify(error.to_dict())
    response.status_code = error.status_code
    if isinstance(error, RateLimitError):
        response.headers["Retry-After"] = str(max(int(error.retry_after_seconds), 1))
    log.info("request_error", status=error.status_code, **error.to_dict())
    return response


def handle_http_error(error):
    response = jsonify(error=error.description or error.name)
    response.status_code = error.code
    return response


def handle_unexpected_error(error):
    db.session.rollback()
    log.exception("unhandled_exception", error=str(error))
    return jsonify(error="Internal Server Error"), 500


def register_error_handlers(app):
    app.register_error_handler(Error, handle_error)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected_error)
