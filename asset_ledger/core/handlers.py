import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from asset_ledger.core.errors import AssetLedgerError, ValidationError
from asset_ledger.schemas.common import error_envelope

logger = logging.getLogger(__name__)


def _field_name(location) -> str:
    parts = [str(part) for part in location if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AssetLedgerError)
    async def ledger_error_handler(request: Request, exc: AssetLedgerError):
        if exc.status_code >= 500:
            logger.error(
                "%s %s failed: %s (cause: %r)",
                request.method,
                request.url.path,
                exc.message,
                exc.cause,
            )
        errors = exc.fields if isinstance(exc, ValidationError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.message, errors),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = [_field_name(error.get("loc", ())) for error in exc.errors()]
        return JSONResponse(
            status_code=400,
            content=error_envelope(
                "Invalid request: {}".format(", ".join(fields)), fields
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_envelope("Internal server error"))


__all__ = ["setup_exception_handlers"]
