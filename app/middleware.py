import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import HttpException

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Error body
# ---------------------------------------------------------------------------


def error_response(request: Request, status_code: int, message: str, errors: list[str]) -> JSONResponse:
    """
    Log the failure and render the API's uniform error body.

    The ``status`` label is the fixed literal ``"BAD REQUEST"`` whatever the
    code; clients match on ``code``.
    """
    logger.error(
        "[%s] %s >> StatusCode:: %s, Message:: %s",
        request.method, request.url.path, status_code, message,
    )
    return JSONResponse(
        status_code=status_code,
        content={"code": status_code, "status": "BAD REQUEST", "message": message, "errors": errors},
    )


async def http_exception_handler(request: Request, exc: HttpException) -> JSONResponse:
    return error_response(request, exc.status_code, exc.message, exc.errors)


async def starlette_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(request, exc.status_code, str(exc.detail), [])


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return error_response(request, 400, "Validation failed", errors)


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    if isinstance(exc, IntegrityError):
        return error_response(request, 409, "Resource already exists", [])
    logger.exception("Unhandled database error")
    return error_response(request, 500, "Something went wrong", [])


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error")
    return error_response(request, 500, "Something went wrong", [])


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HttpException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, starlette_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# ---------------------------------------------------------------------------
# Request logging (pure ASGI: no child task per request)
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware:
    """
    Pure ASGI middleware that logs one line per HTTP request and adds an
    ``X-Response-Time-Ms`` header with the wall-clock handling time.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.info(
                "%s %s -> %s (%.2f ms)",
                scope["method"], scope["path"], status_code,
                (time.perf_counter() - start) * 1000,
            )
