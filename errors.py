"""
Error types for the gateway and their HTTP mapping.

    GatewayError (base)
    ├── ValidationError  -> 400
    ├── NotFound         -> 404
    └── StoreError       -> 500

Every error body is plain text: the message, nothing else.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from bson.errors import BSONError
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(GatewayError):
    """Request body could not be used as a document."""

    status_code = 400


class NotFound(GatewayError):
    status_code = 404


class StoreError(GatewayError):
    """A database operation failed. The message carries the action and the driver's text."""

    status_code = 500


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Convert driver and BSON encoding failures raised inside the block into StoreError("<action>: <msg>")."""
    # BSON encoding happens client side: oversized ints raise OverflowError, bad keys InvalidDocument
    try:
        yield
    except (PyMongoError, BSONError, OverflowError) as exc:
        raise StoreError(f"{action}: {exc}") from exc


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(NotFound)
    async def handle_not_found(request: Request, exc: NotFound):
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return PlainTextResponse(exc.message, status_code=exc.status_code)
