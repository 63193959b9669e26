#backend/app/api/errors.py

import datetime
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.config import settings
from backend.app.core.errors import EvaluationServiceError
from backend.app.models.job_models import ErrorData, ErrorResponse

logger = logging.getLogger(__name__)


def error_envelope(request: Request, status_code: int, message: str, exc: BaseException) -> JSONResponse:
    """{message, data: {status_code, timestamp, path, stack?}}; stack only outside production."""
    data = ErrorData(
        status_code=status_code,
        timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
        path=request.url.path,
    )
    if not settings.is_production():
        data.stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error("[%s] %s - %s", request.method, request.url.path, message)
    body = ErrorResponse(message=message, data=data)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def service_error_handler(request: Request, exc: EvaluationServiceError) -> JSONResponse:
    return error_envelope(request, exc.status_code, exc.message, exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return error_envelope(request, 400, "; ".join(parts) or "Invalid request", exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_envelope(request, exc.status_code, str(exc.detail), exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return error_envelope(request, 500, str(exc) or "Internal Server Error", exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EvaluationServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
