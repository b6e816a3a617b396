"""
Exception handlers that turn every failure into the service's JSON envelope:
``{"status": false, "message": ..., "errors": {...}}``.
"""
import logging
from typing import Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "The given data was invalid."


class ValidationFailed(Exception):
    """Field-level validation failure detected by a handler, not by the schema."""

    def __init__(self, errors: Dict[str, List[str]]):
        super().__init__(VALIDATION_MESSAGE)
        self.errors = errors


def _error_response(status_code: int, message: str, errors=None, headers=None) -> JSONResponse:
    content = {"status": False, "message": message}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def format_validation_errors(raw_errors) -> Dict[str, List[str]]:
    """
    Collapse pydantic error dicts into ``{field: [messages]}``.

    Messages raised by schema validators are passed through; missing fields
    and type errors get a generic message naming the field.
    """
    errors: Dict[str, List[str]] = {}
    for error in raw_errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = loc[-1] if loc else "body"
        error_type = error.get("type")

        if error_type == "missing":
            message = f"The {field} field is required."
        elif error_type == "value_error":
            message = error.get("msg", "").removeprefix("Value error, ")
        elif error_type == "json_invalid":
            message = "The request body must be valid JSON."
        else:
            message = f"The {field} field is invalid."

        errors.setdefault(field, []).append(message)
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Custom handler for request validation errors (422)"""
    errors = format_validation_errors(exc.errors())
    logger.info("Validation error on %s %s: fields=%s", request.method, request.url.path, sorted(errors))
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, VALIDATION_MESSAGE, errors)


async def validation_failed_handler(request: Request, exc: ValidationFailed):
    logger.info("Validation failed on %s %s: fields=%s", request.method, request.url.path, sorted(exc.errors))
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, VALIDATION_MESSAGE, exc.errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Wrap HTTPException detail in the standard envelope, keeping its headers"""
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("message") or detail.get("detail") or str(detail)
    else:
        message = str(detail)
    return _error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Internal server error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationFailed, validation_failed_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
