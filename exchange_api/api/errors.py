"""
Mapping of domain outcomes to HTTP responses.

- NotFoundError      -> 404
- UnauthorizedError  -> 401
- ValidationFailure  -> 422
- anything else      -> 400 with the exception message
"""
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from exchange_api.domain.entities import NotFoundError, UnauthorizedError, ValidationFailure

logger = logging.getLogger(__name__)


def unexpected_error(operation: str, exc: Exception) -> HTTPException:
    """Log an unexpected failure and turn it into a 400 carrying its message"""
    logger.error(f"❌ {operation} failed: {exc}", exc_info=True)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


async def not_found_handler(request: Request, exc: NotFoundError):
    logger.info(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


async def unauthorized_handler(request: Request, exc: UnauthorizedError):
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def validation_failure_handler(request: Request, exc: ValidationFailure):
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Log body validation errors for debugging"""
    logger.error(f"Validation error for {request.method} {request.url.path}")
    logger.error(f"Validation errors: {exc.errors()}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that JSON can't encode
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_handler)
    app.add_exception_handler(ValidationFailure, validation_failure_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
