"""Domain error taxonomy.

Services raise these; the API layer maps ``status_code`` straight onto the
HTTP response (see ``backend.app.main``).
"""


class AppError(Exception):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(AppError):
    """Missing or malformed input; user-correctable."""

    status_code = 400
    default_detail = "Invalid request"


class InvalidTransitionError(ValidationError):
    default_detail = "Status transition not allowed"


class DuplicateVoteError(AppError):
    status_code = 400
    default_detail = "Already voted on this feature"


class UnauthorizedError(AppError):
    """No identity was supplied (or it could not be resolved)."""

    status_code = 401
    default_detail = "Unauthorized"


class ForbiddenError(AppError):
    """An identity is present but lacks the privilege for the action."""

    status_code = 403
    default_detail = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_detail = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_detail = "Conflict"


class PersistenceError(AppError):
    """The store failed; not user-correctable."""

    status_code = 500
    default_detail = "Persistence failure"
