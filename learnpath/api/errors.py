"""
Exception handlers: every error leaves the API as JSON with the request id header.

Domain errors carry their own status and machine-readable code:

    {"detail": "Circular dependency detected ...", "code": "cyclic_dependency", "field": "prerequisites"}
"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from learnpath.api.middleware.request_id import REQUEST_ID_HEADER
from learnpath.config import get_settings
from learnpath.kernel.errors import PathwayError
from learnpath.logging_config import get_logger
from learnpath.schemas.common import ErrorResponse

logger = get_logger(__name__)


def _json(
    request: Request,
    status_code: int,
    content: dict,
    headers: Optional[dict] = None,
) -> JSONResponse:
    merged = dict(headers or {})
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        merged[REQUEST_ID_HEADER] = request_id
    return JSONResponse(status_code=status_code, content=content, headers=merged)


async def pathway_error_handler(request: Request, exc: PathwayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message, exc_info=exc.__cause__)
    else:
        logger.info(
            "Request rejected",
            extra={"code": exc.code, "field": exc.field, "path": request.url.path},
        )
    body = ErrorResponse(detail=exc.message, code=exc.code, field=exc.field)
    return _json(request, exc.status_code, body.model_dump())


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _json(request, exc.status_code, {"detail": exc.detail}, exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return _json(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"detail": "Validation error", "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    content = {
        "detail": "Internal server error",
        "request_id": getattr(request.state, "request_id", None),
    }
    if get_settings().debug:
        content.update(detail=str(exc), type=type(exc).__name__)
    return _json(request, status.HTTP_500_INTERNAL_SERVER_ERROR, content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PathwayError, pathway_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
