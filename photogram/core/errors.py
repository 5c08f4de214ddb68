"""
Error taxonomy shared by the store, the identity gateway and the services.

Routers never inspect messages; the application exception handler renders
each kind with its ``status_code``.
"""

from __future__ import annotations


class PhotogramError(Exception):
    status_code = 500
    kind = "internal"

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(PhotogramError):
    status_code = 401
    kind = "unauthorized"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class Forbidden(PhotogramError):
    status_code = 403
    kind = "forbidden"

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class NotFound(PhotogramError):
    status_code = 404
    kind = "not_found"

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class InvalidInput(PhotogramError):
    status_code = 400
    kind = "invalid_input"

    def __init__(self, message: str = "Invalid input") -> None:
        super().__init__(message)


class Unavailable(PhotogramError):
    status_code = 503
    kind = "unavailable"

    def __init__(self, message: str = "Service unavailable") -> None:
        super().__init__(message)


class Timeout(Unavailable):
    status_code = 504
    kind = "timeout"

    def __init__(self, message: str = "Upstream call timed out") -> None:
        super().__init__(message)
