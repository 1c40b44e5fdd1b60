import json
from http import HTTPStatus
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from todo_api.core.result import ErrorKind, Failure, Result, Success
from todo_api.shared.logger import Logger

__all__ = [
    "api_response",
    "http_exception_handler",
    "json_body",
    "server_error_handler",
    "unwrap",
    "validation_exception_handler",
]

logger = Logger(__name__).get_logger()

STATUS_FOR_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

INTERNAL_ERROR_MESSAGE = HTTPStatus.INTERNAL_SERVER_ERROR.phrase


def api_response(message: str = HTTPStatus.OK.phrase, data: Any = None) -> dict:
    return {"message": message, "data": data}


def unwrap[T](result: Result[T]) -> T:
    """Return the success value or raise the matching HTTP error."""
    match result:
        case Success(value=value):
            return value
        case Failure(kind=ErrorKind.INTERNAL):
            message = INTERNAL_ERROR_MESSAGE
        case Failure(message=message):
            pass
    raise HTTPException(status_code=STATUS_FOR_KIND[result.kind], detail=message)


def _body_too_large(limit: int) -> HTTPException:
    return HTTPException(
        status_code=HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
        detail=f"Request body exceeds {limit} bytes",
    )


async def json_body(request: Request) -> Any:
    """Raw JSON request body, validated later by the service it is handed to.

    Bodies larger than ``network.max_body_bytes`` are refused with 413
    before they are fully read.
    """
    limit = request.app.state.config.network.max_body_bytes

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise _body_too_large(limit)

    raw = bytearray()
    async for chunk in request.stream():
        raw += chunk
        if len(raw) > limit:
            logger.warning("Refused request body over %d bytes on %s", limit, request.url.path)
            raise _body_too_large(limit)

    if not raw:
        return {}
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning("Failed to decode request body: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body"
        ) from e


# ================================================================================
#       Exception handlers
# ================================================================================
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(exc.status_code).phrase
    return JSONResponse(
        status_code=exc.status_code,
        content=api_response(message=message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{location}: {first.get('msg')}" if location else HTTPStatus.BAD_REQUEST.phrase
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=api_response(message=message),
    )


async def server_error_handler(request: Request, exc: Exception):
    logger.error(
        "Failed to process request %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=api_response(message=INTERNAL_ERROR_MESSAGE),
    )
