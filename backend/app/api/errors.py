"""Global error handlers rendering the shared failure envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.request_id import get_request_id
from app.domain.common.errors import HandbookError

LOGGER = logging.getLogger(__name__)


def _failure(request: Request, status_code: int, kind: str, detail, **extra) -> JSONResponse:
    payload = {"ok": False, "error": kind, "detail": detail, "request_id": get_request_id(request)}
    payload.update(extra)
    return JSONResponse(status_code=status_code, content=payload)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HandbookError)
    async def handbook_exc_handler(request: Request, exc: HandbookError):  # type: ignore[override]
        if exc.status_code >= 500:
            LOGGER.warning("request_failed", extra={"kind": exc.kind, "path": request.url.path})
        return _failure(request, exc.status_code, exc.kind, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        kind = exc.detail if isinstance(exc.detail, str) else "http_error"
        return _failure(request, exc.status_code, kind, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        return _failure(request, 400, "validation_error", "Invalid request payload", errors=errors)

