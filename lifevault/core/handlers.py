import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .settings import Settings
from ..storage.base import BlobNotFoundError, StorageError

logger = logging.getLogger(__name__)


def error_response(status_code: int, error: str, headers: dict[str, str] | None = None, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra}, headers=headers)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """
    Renders every failure in the {success: false, error, details?} envelope.
    Internal error text only leaves the process in development.
    """

    def internal_error(exc: Exception) -> JSONResponse:
        message = str(exc) if settings.is_development else "Internal server error"
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail
        if exc.status_code == status.HTTP_404_NOT_FOUND and detail == "Not Found":
            detail = "Route not found"
        return error_response(exc.status_code, str(detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return error_response(status.HTTP_400_BAD_REQUEST, "Validation error", details=details)

    @app.exception_handler(NoResultFound)
    async def no_result_handler(request: Request, exc: NoResultFound):
        return error_response(status.HTTP_404_NOT_FOUND, "Resource not found")

    @app.exception_handler(BlobNotFoundError)
    async def blob_not_found_handler(request: Request, exc: BlobNotFoundError):
        return error_response(status.HTTP_404_NOT_FOUND, "File not found")

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return internal_error(exc)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.exception("Storage error on %s %s", request.method, request.url.path)
        return internal_error(exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return internal_error(exc)
