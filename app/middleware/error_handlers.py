"""
Exception handlers that render API errors in the {success, data, error}
envelope. Stack traces are logged, never returned.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.db.helpers import DatabaseError
from app.infrastructure.observability.logging import get_logger
from app.models.api.common import ApiResponse

logger = get_logger(__name__)


def _envelope(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ApiResponse.fail(error).model_dump())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = "Invalid request"
    if location:
        message = f"{location}: {first.get('msg', 'invalid request')}"
    return _envelope(status.HTTP_422_UNPROCESSABLE_ENTITY, message)


async def database_exception_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error(
        "Unhandled database error",
        method=request.method,
        path=request.url.path,
        operation=exc.operation,
        error=str(exc),
    )
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DatabaseError, database_exception_handler)
