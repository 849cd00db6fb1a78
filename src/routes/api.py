"""API router assembly and error handlers."""

import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api.custom_fields import custom_field_router
from src.api.employees import employee_router
from src.utils.errors import APIError, ErrorResponse, FieldError, ValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

api_router = APIRouter(prefix="/api")
api_router.include_router(employee_router)
api_router.include_router(custom_field_router)


# =============================================================================
# Exception Handlers
# =============================================================================

async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render an APIError as the error envelope with its status code."""
    logger.log(
        exc.log_level,
        "%s %s failed with %s: %s %s",
        request.method,
        request.url.path,
        exc.error_code,
        exc.message,
        exc.details or "",
    )

    response = exc.to_response()
    return JSONResponse(status_code=response.status_code, content=response.to_dict())


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed bodies and parameters as a 400 validation error."""
    field_errors = []
    for error in exc.errors():
        # Drop the leading "body"/"query"/"path" segment
        loc = [str(part) for part in error.get("loc", ())[1:]]
        field_errors.append(
            FieldError(
                field=".".join(loc) or "body",
                message=error.get("msg", "Invalid value"),
                code=error.get("type", "invalid"),
            )
        )

    return await api_error_handler(request, ValidationError(field_errors=field_errors))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    response = ErrorResponse(
        message="An unexpected error occurred",
        status_code=500,
        error_code="internal_error",
    )
    return JSONResponse(status_code=500, content=response.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
