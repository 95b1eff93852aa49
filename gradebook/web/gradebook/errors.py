"""Exception handlers rendering every failure as ``{"error": "<message>"}``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException

from gradebook.grading import GradebookError
from gradebook.lib.json import FastAPIJSONResponse

logger = logging.getLogger(__name__)


def _describe(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error.get("loc", ()) if loc != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def add_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GradebookError)
    async def gradebook_error_handler(request: Request, exc: GradebookError) -> FastAPIJSONResponse:
        logger.info(
            "request refused",
            extra={"path": request.url.path, "status": exc.status_code, "error": exc.message},
        )
        return FastAPIJSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> FastAPIJSONResponse:
        return FastAPIJSONResponse({"error": _describe(exc)}, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> FastAPIJSONResponse:
        return FastAPIJSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> FastAPIJSONResponse:
        logger.exception("unhandled error", extra={"path": request.url.path, "method": request.method})
        return FastAPIJSONResponse(
            {"error": "Internal server error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
