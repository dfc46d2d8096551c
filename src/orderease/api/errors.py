"""Translate domain errors into ``{code, message, errors}`` responses."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, InvalidOperationError, ObjectNotFoundError, ValidationError

from orderease.shared.errors import DomainError, Internal, NotFound
from orderease.utils.logging import get_logger

logger = get_logger(__name__)


def _flatten(messages) -> str:
    if isinstance(messages, dict):
        return "; ".join(str(msg) for msgs in messages.values() for msg in (msgs if isinstance(msgs, list) else [msgs]))
    return str(messages)


def _body(code: str, messages) -> dict:
    errors = messages if isinstance(messages, dict) else {"_entity": [str(messages)]}
    return {
        "code": code,
        "message": _flatten(errors),
        "errors": {field: [str(m) for m in (msgs if isinstance(msgs, list) else [msgs])] for field, msgs in errors.items()},
    }


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    if isinstance(exc, DomainError):
        code, status = exc.code, exc.http_status
    else:
        code, status = "VALIDATION_FAILED", 400
    logger.info("request_rejected", path=request.url.path, code=code)
    return JSONResponse(status_code=status, content=_body(code, exc.messages))


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body") or "_entity"
        errors.setdefault(location, []).append(error["msg"])
    logger.info("request_rejected", path=request.url.path, code="VALIDATION_FAILED")
    return JSONResponse(status_code=400, content=_body("VALIDATION_FAILED", errors))


async def handle_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, code=NotFound.code)
    return JSONResponse(status_code=NotFound.http_status, content=_body(NotFound.code, exc.messages))


async def handle_invalid_operation(request: Request, exc: InvalidOperationError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, code="CONFLICT")
    return JSONResponse(status_code=409, content=_body("CONFLICT", exc.messages))


async def handle_version_conflict(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, code="CONFLICT", reason="stale_version")
    body = _body("CONFLICT", "The record was changed by another request; retry")
    return JSONResponse(status_code=409, content=body)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_failed", path=request.url.path)
    return JSONResponse(
        status_code=Internal.http_status,
        content={"code": Internal.code, "message": "Internal server error", "errors": {}},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(ObjectNotFoundError, handle_not_found)
    app.add_exception_handler(InvalidOperationError, handle_invalid_operation)
    app.add_exception_handler(ExpectedVersionError, handle_version_conflict)
    app.add_exception_handler(Exception, handle_unexpected)
