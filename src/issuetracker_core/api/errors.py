"""Map domain errors onto HTTP responses."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import DomainError, ErrorKind

logger = logging.getLogger("issuetracker-core.api.errors")

# Non-standard status used for requests abandoned before completion
CLIENT_CLOSED_REQUEST = 499

STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FAILED_VALIDATION: 422,
    ErrorKind.EDIT_CONFLICT: 409,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.INVALID_AUTHENTICATION: 401,
    ErrorKind.INVALID_ROLE: 403,
    ErrorKind.NOT_PERMITTED: 403,
    ErrorKind.ALREADY_ACTIVATED: 409,
    ErrorKind.CANCELED: CLIENT_CLOSED_REQUEST,
}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = STATUS_CODES[exc.kind]
    if exc.kind == ErrorKind.CANCELED:
        logger.debug(f"{request.method} {request.url.path} canceled")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.kind.value}")

    headers = None
    if exc.kind == ErrorKind.INVALID_AUTHENTICATION:
        headers = {"WWW-Authenticate": "Bearer"}

    body = exc.errors if exc.kind == ErrorKind.FAILED_VALIDATION else exc.message
    return JSONResponse(status_code=status_code, content={"error": body}, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies or parameters: one field -> message map."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.setdefault(".".join(location) or "request", error.get("msg", "invalid value"))
    return JSONResponse(status_code=400, content={"error": dict(sorted(errors.items()))})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "the server encountered a problem and could not process your request"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
