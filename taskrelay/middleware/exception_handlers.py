"""Exception handlers shared by every router.

Routes called by the WhatsApp provider and the reasoning workflow answer
errors with the same ``{success, error}`` envelope they use on success; the
web task routes keep FastAPI's ``{detail}`` body.
"""
import logging
from typing import Iterable, Tuple

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskrelay.schemas.chat import ActionResponse

logger = logging.getLogger(__name__)


def _envelope(status_code: int, error: str) -> JSONResponse:
    body = ActionResponse(success=False, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _describe(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def configure_exception_handlers(app: FastAPI, envelope_prefixes: Iterable[str]) -> None:
    """Register handlers; paths under ``envelope_prefixes`` get envelope bodies."""
    prefixes: Tuple[str, ...] = tuple(envelope_prefixes)

    def wants_envelope(request: Request) -> bool:
        return request.url.path.startswith(prefixes)

    @app.exception_handler(StarletteHTTPException)
    async def envelope_http_exception_handler(request: Request, exc: StarletteHTTPException):
        if not wants_envelope(request):
            return await http_exception_handler(request, exc)
        logger.info("%s %s failed with %d: %s", request.method, request.url.path, exc.status_code, exc.detail)
        return _envelope(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        if wants_envelope(request):
            return _envelope(status.HTTP_400_BAD_REQUEST, _describe(exc))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )
