import functools
import inspect

from fastapi import HTTPException, Request, status
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from utils.logger import get_logger

logger = get_logger("Global_Exception")


class AppException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class InvalidInputError(AppException):
    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class UnauthorizedError(AppException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class InvalidCredentialError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid OTP"):
        super().__init__(detail)


class ForbiddenError(AppException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail)


class NotFoundError(AppException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class ConflictError(AppException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status.HTTP_409_CONFLICT, detail)


class InternalError(AppException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail)


def handles_store_errors(operation: str):
    """
    Turn record-store and cache failures into a generic InternalError at the
    service boundary. Domain errors are not caught and pass through unchanged.
    """
    def decorator(func):
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (PyMongoError, RedisError):
                bound = signature.bind_partial(*args, **kwargs).arguments
                ids = {k: str(v) for k, v in bound.items() if k.endswith("_id")}
                logger.exception(f"Store error during {operation}", extra={"operation": operation, **ids})
                raise InternalError(f"Failed to {operation}")
        return wrapper
    return decorator


def _format_validation_errors(exc: RequestValidationError) -> dict:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        # drop the "body"/"query"/"path" prefix
        loc = [str(part) for part in err.get("loc", ())[1:]] or ["__root__"]
        errors.setdefault(".".join(loc), []).append(err.get("msg", "Invalid value"))
    return errors


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error("Request failed", extra={"path": request.url.path, "detail": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Validation failed", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed", "errors": _format_validation_errors(exc)},
    )


async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path}
    )
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error"}
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
