# errors.py
"""
Error taxonomy and the JSON envelope every endpoint answers with.

    {"success": bool, "data": {...}, "message": "...", "error": {"code": ..., "message": ...}}

Domain errors carry their own stable code and HTTP status. The exception
handlers registered by `register_exception_handlers` turn them, and the
framework's own errors, into the envelope so clients never see a traceback.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ===================================================================
# Domain Exceptions
# ===================================================================

class SocialError(Exception):
    """Base class for errors surfaced to API clients."""
    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SocialError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class Unauthorized(SocialError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class Forbidden(SocialError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed"


class NotFound(SocialError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class BadRequest(SocialError):
    """A request that conflicts with the current social state."""
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class SelfActionForbidden(BadRequest):
    default_message = "Cannot perform this action on yourself"


class AlreadyLiked(BadRequest):
    default_message = "Design already liked"


class NotLiked(BadRequest):
    default_message = "Design not liked yet"


class AlreadyFollowing(BadRequest):
    default_message = "Already following this user"


class NotFollowing(BadRequest):
    default_message = "Not following this user"


class InternalError(SocialError):
    pass


# ===================================================================
# Envelope Helpers
# ===================================================================

_STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Success envelope. `data` may be a dict or a pydantic model."""
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        if hasattr(data, "model_dump"):
            data = data.model_dump(by_alias=True, mode="json")
        body["data"] = jsonable_encoder(data)
    return body


def error_body(code: str, message: str) -> Dict[str, Any]:
    return {"success": False, "error": {"code": code, "message": message}}


def error_response(status_code: int, code: str, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(code, message), headers=headers)


# ===================================================================
# Exception Handlers
# ===================================================================

async def social_error_handler(request: Request, exc: SocialError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return error_response(exc.status_code, exc.code, exc.message, headers=headers)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _STATUS_CODES.get(exc.status_code, "INTERNAL_ERROR")
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = f"Method {request.method} not allowed"
    else:
        message = str(exc.detail)
    return error_response(exc.status_code, code, message, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, ValidationError.code, message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.code, "Server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SocialError, social_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
