"""HTTP error types and the handlers that render them.

The activity stores never raise these; booking rejections and storage
failures reach the user as toasts. Controllers and dependencies raise
them for missing sessions, wrong roles, unknown records and database
failures on the staff surface.

Every error body has the same shape::

    {"error": "forbidden", "detail": "Requires role: staff",
     "context": {"required": ["staff"], "role": "volunteer"}}
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger("portal.errors")

_ERROR_TYPES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    422: "validation_error",
    500: "internal_error",
    503: "service_unavailable",
}


class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class; subclasses set ``status_code``, ``error`` and a default ``detail``.

    Keyword arguments other than ``detail`` and ``error_code`` are returned
    to the client as ``context``.
    """

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "Something went wrong"

    def __init__(self, detail: str | None = None, error_code: str | None = None, **context: Any) -> None:
        self.detail = detail or type(self).detail
        self.error_code = error_code
        self.context = context or None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.error, detail=self.detail, error_code=self.error_code, context=self.context)


class BadRequestError(APIError):
    status_code = 400
    error = "bad_request"
    detail = "The request could not be applied"


class UnauthorizedError(APIError):
    status_code = 401
    error = "unauthorized"
    detail = "Log in to continue"


class ForbiddenError(APIError):
    status_code = 403
    error = "forbidden"
    detail = "Your role cannot use this route"


class NotFoundError(APIError):
    status_code = 404
    error = "not_found"
    detail = "No such record"


class ConflictError(APIError):
    status_code = 409
    error = "conflict"
    detail = "The request conflicts with existing data"


class DatabaseError(APIError):
    status_code = 500
    error = "database_error"
    detail = "The activity database could not complete the request"


class ServiceUnavailableError(APIError):
    status_code = 503
    error = "service_unavailable"
    detail = "A backing service is not available"


def _status_to_error_type(status_code: int) -> str:
    return _ERROR_TYPES.get(status_code, "error")


def _render(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(level, "%s %s -> %d %s: %s", request.method, request.url.path, exc.status_code, exc.error, exc.detail)
    return _render(exc.status_code, exc.to_response())


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    body = ErrorResponse(error=_status_to_error_type(exc.status_code), detail=str(exc.detail))
    return _render(exc.status_code, body)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(p) for p in err["loc"] if p != "body") for err in exc.errors()]
    body = ErrorResponse(
        error="validation_error",
        detail="; ".join(f"{f or 'body'}: {err['msg']}" for f, err in zip(fields, exc.errors())),
        context={"fields": fields},
    )
    return _render(422, body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
