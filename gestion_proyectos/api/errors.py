"""JSON error envelope: every failure answers ``{"error": ...}``."""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gestion_proyectos.config import get_settings

logger = logging.getLogger(__name__)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Validación fallida", "detail": jsonable_encoder(exc.errors())},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content: dict = {"error": "Error interno del servidor"}
    if get_settings().debug:
        content["detail"] = str(exc)
        content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        content["body"] = _raw_body(request)
    return JSONResponse(status_code=500, content=content)


async def keep_raw_body(request: Request, call_next):
    """Keep the raw request body on ``request.state`` while debugging.

    The 500 handler receives a fresh Request without the receive channel, so
    the body has to be stashed in the scope before the endpoint consumes it.
    """
    request.state.raw_body = await request.body()
    return await call_next(request)


def _raw_body(request: Request) -> str | None:
    body = getattr(request.state, "raw_body", None)
    if not body:
        return None
    return body.decode("utf-8", errors="replace")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    if get_settings().debug:
        app.middleware("http")(keep_raw_body)
