"""
Manejo de errores de la API.

Traduce las excepciones del core a respuestas JSON con la forma:

    {"code": "NOT_FOUND", "message": "Noticia no encontrada."}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from escalando_core.exceptions import EscalandoError, ValidationError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "INVALID_PAYLOAD": 400,
    "INVALID_TOKEN": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "TRANSLATION_ERROR": 502,
    "INTERNAL_ERROR": 500,
}

HTTP_CODES = {
    400: "INVALID_PAYLOAD",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def error_body(code: str, message: str, **extra) -> dict:
    body = {"code": code, "message": message}
    body.update(extra)
    return body


async def escalando_error_handler(request: Request, exc: EscalandoError) -> JSONResponse:
    status_code = STATUS_BY_CODE.get(exc.code, 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
    extra = {}
    if isinstance(exc, ValidationError) and exc.errors:
        extra["errors"] = exc.errors
    return JSONResponse(status_code=status_code, content=error_body(exc.code, exc.message, **extra))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_body(
            "INVALID_PAYLOAD",
            "Payload inválido",
            errors=jsonable_encoder(exc.errors()),
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_CODES.get(exc.status_code, "INTERNAL_ERROR")
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_body(code, message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Error no manejado en {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=error_body("INTERNAL_ERROR", "Error inesperado."))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EscalandoError, escalando_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
