"""
Error types raised by the services and turned into JSON at the request boundary.

Every error renders as ``{"error": ..., "message": ...}`` with its HTTP status.
"""


class SchoolDeskError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"error": self.error, "message": self.message}


class ValidationError(SchoolDeskError):
    status_code = 400
    error = "Invalid request data"


class AuthorizationError(SchoolDeskError):
    status_code = 401
    error = "Unauthorized"


class ForbiddenError(SchoolDeskError):
    status_code = 403
    error = "Access forbidden"


class NotFoundError(SchoolDeskError):
    status_code = 404
    error = "Not found"


class PersistenceError(SchoolDeskError):
    """The store rejected a read or write. ``step`` names the failing step."""

    status_code = 500
    error = "Persistence failure"

    def __init__(self, message, step=None):
        super().__init__(message)
        self.step = step

    def to_dict(self):
        data = super().to_dict()
        if self.step:
            data["step"] = self.step
        return data
