"""
Response mapping for errors.

Every failure leaves the API as ``{"error": message}`` with the status carried
by the raised ApiError. Unexpected exceptions are logged with their traceback
and reported with a generic message only.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import ApiError, Internal

logger = logging.getLogger(__name__)

INVALID_BODY_MESSAGE = "Invalid request body"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@contextmanager
def internal_error(message: str) -> Iterator[None]:
    """Turn any non-API exception raised in the block into Internal(message)."""
    try:
        yield
    except ApiError:
        raise
    except Exception as e:
        logger.exception(message)
        raise Internal(message) from e


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"Rejected body for {request.method} {request.url.path}: {exc.errors()}")
    return error_response(400, INVALID_BODY_MESSAGE)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
