"""
Error types raised by the directory services.

Every error a caller can fix carries an HTTP status code and a
human-readable message; the API layer turns them into JSON responses
(see partner_directory.main). Anything else, such as a SQLAlchemyError,
is an internal failure and propagates unchanged.
"""


class DirectoryError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(DirectoryError):
    """Malformed, missing or invalid input."""

    status_code = 400


class UnauthorizedError(DirectoryError):
    """Missing or invalid credentials."""

    status_code = 401


class ForbiddenError(DirectoryError):
    """Authenticated, but not allowed to act on this resource."""

    status_code = 403


class NotFoundError(DirectoryError):
    """
    Entity is absent, or present in a state the caller may not learn about
    (e.g. an invitation that was already processed).
    """

    status_code = 404


class ConflictError(DirectoryError):
    """A concurrent request changed the row between read and write."""

    status_code = 409
