"""
Domain errors for TaskFlow.

Each error carries the HTTP status and machine-readable code the API maps it to.
Validation errors also subclass ValueError so plain callers can catch them.
"""


class TaskflowError(Exception):
    """Base class for all TaskFlow domain errors."""

    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class UserInputError(TaskflowError, ValueError):
    """The request was understood but its content is invalid."""

    status_code = 400
    code = "BAD_USER_INPUT"


class NotFoundError(UserInputError):
    """The referenced record does not exist or belongs to another user."""

    status_code = 404
    code = "NOT_FOUND"


class ConflictError(UserInputError):
    """A uniqueness rule would be violated."""

    status_code = 409
    code = "CONFLICT"


class AuthenticationError(TaskflowError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    code = "UNAUTHENTICATED"


class ForbiddenError(TaskflowError):
    """Authenticated, but not allowed to perform the action."""

    status_code = 403
    code = "FORBIDDEN"
