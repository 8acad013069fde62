"""
Global exception handlers.

- CatalogError -> status and body chosen by the error itself
- RequestValidationError -> 400 ``{message, errors[]}``, same shape as a
  failed field rule so clients handle one format
- Exception (catch-all) -> 500, detail only in development
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from virtyum.config import settings
from virtyum.errors import CatalogError, StoreUnavailable

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_catalog_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_catalog_error_handler(app: FastAPI) -> None:

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        if isinstance(exc, StoreUnavailable):
            logger.error(
                "%s on %s %s: %s",
                exc.message, request.method, request.url.path, exc.detail,
            )
        else:
            logger.warning(
                "%s %s rejected with %d: %s",
                request.method, request.url.path, exc.status_code, exc.message,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response(include_detail=settings.is_development),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("Malformed request on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "message": "Validation error",
                "errors": [_format_error(e) for e in exc.errors()],
            },
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
        content = {"message": "Internal server error"}
        if settings.is_development:
            content["error"] = str(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
        )


def _format_error(error: dict) -> str:
    # Drop the leading "body"/"query"/"path" location segment.
    loc = [str(part) for part in error.get("loc", ())[1:]]
    if loc:
        return f"{'.'.join(loc)}: {error['msg']}"
    return error["msg"]
