"""Domain errors raised by services and rendered as ``{"error": code}`` responses."""


class ServiceError(Exception):
    """Base class for expected failures; ``code`` is the machine-readable error."""

    status_code = 400
    default_code = "invalid_request"

    def __init__(self, code: str | None = None, message: str | None = None) -> None:
        self.code = code or self.default_code
        self.message = message or self.code
        super().__init__(self.message)


class InvalidInputError(ServiceError):
    status_code = 400
    default_code = "invalid_input"


class NotFoundError(ServiceError):
    status_code = 404
    default_code = "not_found"


class ConflictError(ServiceError):
    status_code = 409
    default_code = "conflict"


class DuplicateUserError(ConflictError):
    """Username or email already belongs to another account."""

    default_code = "already_exists"


class ProgramArchivedError(ConflictError):
    """Archived programs cannot be instantiated into tasks."""

    default_code = "program_archived"


class ForbiddenError(ServiceError):
    """The actor is authenticated but not allowed to perform the change."""

    status_code = 403
    default_code = "forbidden"
