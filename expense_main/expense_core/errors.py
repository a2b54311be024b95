"""
Error kinds raised by the expense services.

Each error carries a machine-readable ``code`` and the HTTP ``status`` the
JSON layer answers with, so callers can tell a terminal validation problem
from a missing record without parsing the message.
"""


class ExpenseError(Exception):
    code = "ERROR"
    status = 400

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_dict(self):
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFound(ExpenseError):
    code = "NOT_FOUND"
    status = 404


class Conflict(ExpenseError):
    code = "CONFLICT"
    status = 409


class InvalidReference(ExpenseError):
    code = "INVALID_REFERENCE"
    status = 400


class ValidationError(ExpenseError):
    code = "VALIDATION_ERROR"
    status = 400


class Unauthorized(ExpenseError):
    code = "UNAUTHORIZED"
    status = 401


class Forbidden(ExpenseError):
    code = "FORBIDDEN"
    status = 403
