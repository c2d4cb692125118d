"""Custom middleware and error handling for API request/response processing."""

from typing import Callable, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..core.errors import (
    CardError,
    DuplicateError,
    ExpiredLinkError,
    InvalidFormatError,
    NotFoundError,
    PersistenceError,
)
from ..utils.logging_config import get_module_logger, log_exception

logger = get_module_logger(__name__)

# Status code and title for each error kind; first match wins
CARD_ERROR_STATUS = (
    (DuplicateError, status.HTTP_409_CONFLICT, "Duplicate Contact"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
    (ExpiredLinkError, status.HTTP_410_GONE, "Link Expired"),
    (InvalidFormatError, status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid Card Format"),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE, "Storage Unavailable"),
)

DEFAULT_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    410: "Gone",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


class ProblemDetailsException(HTTPException):
    """Enhanced HTTPException that includes RFC 9457 Problem Details."""

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        **extra_fields,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.title = title
        self.type_uri = type_uri or f"https://httpstatuses.com/{status_code}"
        self.instance = instance
        self.extra_fields = extra_fields

    @classmethod
    def from_card_error(cls, error: CardError) -> "ProblemDetailsException":
        """Translate a core error into its HTTP representation."""
        for error_type, status_code, title in CARD_ERROR_STATUS:
            if isinstance(error, error_type):
                return cls(
                    status_code=status_code,
                    title=title,
                    detail=error.message,
                    error_kind=type(error).__name__,
                )
        return cls(
            status_code=status.HTTP_400_BAD_REQUEST,
            title="Bad Request",
            detail=error.message,
            error_kind=type(error).__name__,
        )


def problem_response(
    status_code: int,
    title: str,
    detail: Optional[str] = None,
    type_uri: Optional[str] = None,
    instance: Optional[str] = None,
    **extra_fields,
) -> JSONResponse:
    """Create a JSON response in RFC 9457 Problem Details format."""
    problem = {
        "type": type_uri or f"https://httpstatuses.com/{status_code}",
        "title": title,
        "status": status_code,
    }

    if detail:
        problem["detail"] = detail
    if instance:
        problem["instance"] = instance

    problem.update(extra_fields)

    return JSONResponse(
        status_code=status_code,
        content=problem,
        media_type="application/problem+json",
    )


async def _problem_details_handler(request: Request, exc: ProblemDetailsException):
    return problem_response(
        status_code=exc.status_code,
        title=exc.title,
        detail=exc.detail,
        type_uri=exc.type_uri,
        instance=exc.instance or str(request.url),
        **exc.extra_fields,
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    return problem_response(
        status_code=exc.status_code,
        title=DEFAULT_TITLES.get(exc.status_code, "HTTP Error"),
        detail=exc.detail if isinstance(exc.detail, str) else None,
        instance=str(request.url),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    return problem_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        title="Validation Error",
        detail="Request validation failed",
        instance=str(request.url),
        errors=[
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ],
    )


def install_problem_handlers(app: FastAPI) -> None:
    """Render route errors as Problem Details instead of FastAPI's default body."""
    app.add_exception_handler(ProblemDetailsException, _problem_details_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)


class ProblemDetailsMiddleware(BaseHTTPMiddleware):
    """Turns unexpected exceptions into a Problem Details 500 response."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            log_exception("api", exc, {"path": request.url.path})
            return problem_response(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                title="Internal Server Error",
                detail="An unexpected error occurred",
                instance=str(request.url),
            )


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce request size limits on card payloads."""

    def __init__(self, app: ASGIApp, limit: int = 64 * 1024):
        super().__init__(app)
        self.limit = limit

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                length = int(content_length)
            except ValueError:
                return problem_response(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    title="Bad Request",
                    detail="Invalid Content-Length header",
                    instance=str(request.url),
                )

            if length > self.limit:
                logger.warning(f"Rejected {length} byte request to {request.url.path}")
                return problem_response(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    title="Request Entity Too Large",
                    detail=f"Request size {length} bytes exceeds limit of {self.limit} bytes",
                    type_uri="https://datatracker.ietf.org/doc/html/rfc7231#section-6.5.11",
                    instance=str(request.url),
                )

        return await call_next(request)
