# backend/equipdb/errors.py
"""
Exception handlers. Every error leaves the API as {"message": ...}.
"""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"
VALIDATION_ERROR_MESSAGE = "Validation failed"


def unexpected_error_response(
    request: Request, exc: Exception, *, production: bool
) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        extra={"method": request.method, "path": request.url.path},
    )
    if production:
        content = {"message": INTERNAL_ERROR_MESSAGE}
    else:
        content = {
            "message": str(exc) or exc.__class__.__name__,
            "detail": "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            ),
        }
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )


def install_exception_handlers(app: FastAPI, *, production: bool) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "message": VALIDATION_ERROR_MESSAGE,
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    # Errors raised inside middleware never reach UnhandledErrorMiddleware.
    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        return unexpected_error_response(request, exc, production=production)
