"""
Structured HTTP errors raised by services and dependencies.

Each exception carries the HTTP status code, a human-readable message and
an optional list of detail strings.  The handlers in ``app.middleware``
render them as the API's uniform JSON error body.
"""
from app.config import settings


class HttpException(Exception):
    def __init__(self, status_code: int, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class BadRequestException(HttpException):
    def __init__(self, message: str = "Bad request", errors: list[str] | None = None) -> None:
        super().__init__(400, message, errors)


class UnauthorizedException(HttpException):
    def __init__(self, message: str = "Unauthorized", errors: list[str] | None = None) -> None:
        super().__init__(401, message, errors)


class NotFoundException(HttpException):
    def __init__(self, message: str = "Not found", errors: list[str] | None = None) -> None:
        super().__init__(404, message, errors)


class ConflictException(HttpException):
    def __init__(self, message: str = "Conflict", errors: list[str] | None = None) -> None:
        super().__init__(409, message, errors)


class TooManyRequestsException(HttpException):
    def __init__(self, errors: list[str] | None = None) -> None:
        if errors is None:
            errors = [
                "Too many requests from this IP, please try again after "
                f"{settings.RATE_DELAY} minutes"
            ]
        super().__init__(429, "Too many requests", errors)
