"""Error helpers and exception handlers producing ``{"error": code}`` bodies."""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from orientation.core.errors import ServiceError

logger = logging.getLogger(__name__)


def http_error(status_code: int, code: str, headers: dict[str, str] | None = None) -> HTTPException:
    """HTTPException whose body renders as ``{"error": code}``."""
    return HTTPException(status_code=status_code, detail={"error": code}, headers=headers)


def forbidden() -> HTTPException:
    return http_error(status.HTTP_403_FORBIDDEN, "forbidden")


def not_found(code: str = "not_found") -> HTTPException:
    return http_error(status.HTTP_404_NOT_FOUND, code)


def bad_request(code: str) -> HTTPException:
    return http_error(status.HTTP_400_BAD_REQUEST, code)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Dict details are sent as the body itself; string details keep FastAPI's shape."""
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"detail": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code})
