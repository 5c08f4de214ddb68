from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from photogram.core.errors import PhotogramError

logger = logging.getLogger(__name__)


def envelope(
    message: str,
    data: Any = None,
    *,
    success: bool = True,
    error: Optional[str] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data, by_alias=True)
    if error is not None:
        body["error"] = error
    return body


def respond(message: str, data: Any = None, *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(message, data))


def _dev_mode(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.dev_mode)


async def photogram_error_handler(request: Request, exc: PhotogramError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc.message)
        message = "Service temporarily unavailable" if exc.status_code in (503, 504) else "Internal server error"
        error = exc.message if _dev_mode(request) else None
        return JSONResponse(status_code=exc.status_code, content=envelope(message, success=False, error=error))
    return JSONResponse(status_code=exc.status_code, content=envelope(exc.message, success=False))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = ", ".join(".".join(str(p) for p in err.get("loc", ())) for err in exc.errors())
    return JSONResponse(
        status_code=400,
        content=envelope("Invalid request", success=False, error=f"Invalid fields: {fields}" if fields else None),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = f"Route {request.method} {request.url.path} not found"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=envelope(message, success=False))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    error = repr(exc) if _dev_mode(request) else None
    return JSONResponse(status_code=500, content=envelope("Internal server error", success=False, error=error))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PhotogramError, photogram_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
