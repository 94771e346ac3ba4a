from typing import Any, Literal

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, create_model

from anpr_server.logging import Logger

log: Logger = structlog.get_logger()


class AnprServerError(Exception):
    """
    Base exception class for all errors raised by the ANPR server.

    A custom exception handler for FastAPI takes care
    of catching and returning a proper HTTP error from them.

    Args:
        message: The error message that'll be displayed to the user.
        status_code: The status code of the HTTP response. Defaults to 500.
        headers: Additional headers to be included in the response.
    """

    error = "Internal server error"

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.headers = headers

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message}

    @classmethod
    def schema(cls) -> type[BaseModel]:
        error_literal = Literal[cls.error]  # type: ignore

        return create_model(
            cls.__name__,
            error=(error_literal, Field(examples=[cls.error])),
            message=(str, ...),
        )


class MissingRequiredField(AnprServerError):
    error = "Missing required parameters"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Missing required parameter: {field}", 400)

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, "field": self.field}

    @classmethod
    def schema(cls) -> type[BaseModel]:
        return create_model(
            cls.__name__,
            error=(Literal[cls.error], Field(examples=[cls.error])),  # type: ignore
            field=(str, Field(examples=["channelID"])),
        )


class UnsupportedMediaType(AnprServerError):
    error = "Unsupported media type"

    def __init__(self, content_type: str | None, allowed: list[str]) -> None:
        self.content_type = content_type
        super().__init__(
            f"Only {', '.join(allowed)} images are allowed, got {content_type}", 415
        )


class PayloadTooLarge(AnprServerError):
    error = "Payload too large"

    def __init__(self, field: str, size: int, max_size: int) -> None:
        self.field = field
        super().__init__(
            f"{field} is {size} bytes, the limit is {max_size} bytes", 413
        )


class ResourceNotFound(AnprServerError):
    error = "Not found"

    def __init__(self, message: str = "Not found", status_code: int = 404) -> None:
        super().__init__(message, status_code)


class StorageUnavailable(AnprServerError):
    def __init__(self, message: str = "Storage unavailable") -> None:
        super().__init__(message, 500)


async def anpr_server_error_handler(
    request: Request, exc: AnprServerError
) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("Request failed", path=request.url.path, error=exc.message)
    else:
        log.info("Request rejected", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_body(), headers=exc.headers
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("Unhandled error", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": AnprServerError.error, "message": str(exc)},
    )


def add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AnprServerError, anpr_server_error_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(Exception, unhandled_error_handler)
