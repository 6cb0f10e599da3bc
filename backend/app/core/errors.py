"""Application error taxonomy and the JSON error envelope.

Every failure leaves the API as ``{"success": false, "message": ..., "errors": [...]}``.
"""
import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server Error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized to access this route"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized to access this evaluation"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class PaymentDeclined(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Payment processing failed. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, errors=[{"code": "PAYMENT_DECLINED"}])


def field_errors(errors: List[Dict[str, Any]], prefix: str = "") -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``{field, message}`` pairs."""
    flattened = []
    for err in errors:
        parts = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "header")]
        if prefix:
            parts.insert(0, prefix)
        flattened.append({"field": ".".join(parts), "message": err.get("msg", "Invalid value")})
    return flattened


def validation_error_from_pydantic(exc: PydanticValidationError, prefix: str = "") -> ValidationError:
    return ValidationError(errors=field_errors(exc.errors(), prefix))


def error_response(status_code: int, message: str, errors: Optional[list] = None,
                   headers: Optional[dict] = None, **extra) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return error_response(exc.status_code, exc.message, exc.errors)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        ValidationError.default_message,
        field_errors(exc.errors()),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = "Route not found"
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    extra = {}
    if not settings.is_production:
        extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error", **extra)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
