from __future__ import annotations

import logging
from typing import Any, Dict, cast

from fastapi import Request
from fastapi import HTTPException as FastAPIHTTPException
from fastapi.responses import JSONResponse
from starlette import status
from fastapi.exceptions import RequestValidationError

from ...engine.errors import ErrorKind, SystemFault, ValidationError


logger = logging.getLogger(__name__)

HTTP_422 = 422

# Rejections that concern whose move it is or whether the game still runs,
# rather than the move itself.
_CONFLICT_KINDS = frozenset({ErrorKind.GAME_NOT_ACTIVE, ErrorKind.WRONG_TURN})


class MoveRejected(Exception):
    """Raised by route handlers to render an engine ``ValidationError``."""

    def __init__(self, error: ValidationError) -> None:
        super().__init__(str(error))
        self.error = error


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: list[dict[str, str]] | None = None,
    **extra: Any,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "type": err_type,
            "request_id": request_id,
        }
    }
    if field_errors:
        payload["error"]["field_errors"] = field_errors
    payload["error"].update(extra)
    return payload


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _http_error_response(exc: FastAPIHTTPException, request_id: str) -> JSONResponse:
    status_code = exc.status_code
    payload = error_envelope(
        code=_status_to_code(status_code),
        message=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        err_type="client_error" if 400 <= status_code < 500 else "server_error",
        request_id=request_id,
    )
    return JSONResponse(status_code=status_code, content=payload)


def _internal_error_response(request_id: str) -> JSONResponse:
    payload = error_envelope(
        code="internal_error",
        message="Internal Server Error",
        err_type="server_error",
        request_id=request_id,
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, FastAPIHTTPException):
        return _http_error_response(exc, _request_id(request))
    return _internal_error_response(_request_id(request))


async def move_rejected_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render an illegal move as a client error carrying the rule details."""
    error = cast(MoveRejected, exc).error
    status_code = move_error_status(error.kind)
    payload = error_envelope(
        code=error.kind.value.lower(),
        message=error.message,
        err_type="client_error",
        request_id=_request_id(request),
        category=error.category.value,
        suggestions=list(error.suggestions),
        details={k: _jsonable(v) for k, v in error.details.items()},
    )
    return JSONResponse(status_code=status_code, content=payload)


async def system_fault_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = _request_id(request)
    fault = cast(SystemFault, exc)
    logger.error(
        "Engine fault: %s",
        fault,
        exc_info=fault,
        extra={"request_id": request_id, "fault_details": fault.details},
    )
    return _internal_error_response(request_id)


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = _request_id(request)
    if isinstance(exc, FastAPIHTTPException):
        return _http_error_response(exc, request_id)
    logger.exception("Unhandled exception", extra={"request_id": request_id})
    return _internal_error_response(request_id)


async def request_validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    # Map Pydantic/FastAPI validation errors to our structured envelope with 422
    errors = []
    rve = cast(RequestValidationError, exc)
    for e in rve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []) if p is not None)
        msg = e.get("msg", "invalid value")
        typ = e.get("type", "value_error")
        errors.append({"field": loc, "code": typ, "message": msg})
    payload = error_envelope(
        code="unprocessable_entity",
        message="Validation error",
        err_type="client_error",
        request_id=_request_id(request),
        field_errors=errors or None,
    )
    return JSONResponse(status_code=HTTP_422, content=payload)


def move_error_status(kind: ErrorKind) -> int:
    if kind is ErrorKind.SYSTEM_ERROR:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if kind in _CONFLICT_KINDS:
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)


def _status_to_code(status_code: int) -> str:
    if status_code == status.HTTP_404_NOT_FOUND:
        return "not_found"
    if status_code == status.HTTP_400_BAD_REQUEST:
        return "bad_request"
    if status_code == status.HTTP_409_CONFLICT:
        return "conflict"
    if status_code == HTTP_422:
        return "unprocessable_entity"
    if 500 <= status_code < 600:
        return "internal_error"
    return "error"
