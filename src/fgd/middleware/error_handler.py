"""Global error handlers: every failure leaves as {"success": false, "error": ...}."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fgd.exceptions import ConflictError, DataLayerError, NotFoundError, PermissionDeniedError

logger = structlog.get_logger()


def error_response(status_code: int, error: str, headers: dict[str, str] | None = None, **extra: Any) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "error": error}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Starlette resolves handlers along the exception MRO, so ``ConflictError``
    wins over the generic ``ValueError`` handler.
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(400, "Invalid request data", details=jsonable_encoder(exc.errors()))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
        return error_response(404, str(exc) or "Not found")

    @app.exception_handler(PermissionDeniedError)
    async def permission_denied_handler(_request: Request, exc: PermissionDeniedError) -> JSONResponse:
        return error_response(403, str(exc) or "Forbidden")

    @app.exception_handler(ConflictError)
    async def conflict_handler(_request: Request, exc: ConflictError) -> JSONResponse:
        return error_response(409, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(_request: Request, exc: ValueError) -> JSONResponse:
        return error_response(400, str(exc))

    @app.exception_handler(DataLayerError)
    async def data_layer_error_handler(request: Request, exc: DataLayerError) -> JSONResponse:
        logger.error("data_layer_error", path=request.url.path, error=str(exc), exc_info=exc)
        return error_response(500, str(exc) or "Internal server error")

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("database_error", path=request.url.path, error=str(exc), exc_info=exc)
        return error_response(500, "Internal server error")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions, always JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return error_response(500, "Internal server error")
