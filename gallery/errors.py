import enum
from typing import Optional

import structlog
from botocore.exceptions import ClientError
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

logger = structlog.get_logger()


class GalleryError(Exception):
    """Request-level failure carrying the HTTP status it should be reported with."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def body(self) -> dict:
        if self.details is None:
            return {"error": self.message}
        return {"error": self.message, "details": self.details}


class InvalidUpload(GalleryError):
    status_code = status.HTTP_400_BAD_REQUEST


class ImageNotFound(GalleryError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Image not found"):
        super().__init__(message)


class ConfigurationError(Exception):
    pass


class BootstrapError(Exception):
    pass


class StorageErrorKind(enum.Enum):
    NOT_FOUND = "not_found"
    OTHER = "other"


class StorageError(Exception):
    def __init__(self, kind: StorageErrorKind, code: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.code = code

    @classmethod
    def from_client_error(cls, err: ClientError) -> "StorageError":
        error = err.response.get("Error", {})
        code = str(error.get("Code", "Unknown"))
        http_status = err.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in ("404", "NoSuchBucket", "NoSuchKey", "NotFound") or http_status == 404:
            kind = StorageErrorKind.NOT_FOUND
        else:
            kind = StorageErrorKind.OTHER
        return cls(kind, code, error.get("Message") or str(err))


def error_details(exc: Exception) -> str:
    if isinstance(exc, StorageError):
        return exc.code
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", "Unknown"))
    if isinstance(exc, DBAPIError):
        code = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None) or exc.code
        return code or "Unknown"
    return getattr(exc, "code", None) or "Unknown"


async def gallery_error_handler(request: Request, exc: GalleryError):
    logger.warning("request_rejected", path=request.url.path, status=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.body())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(p) for p in first.get("loc", ()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": first.get("msg", "Invalid request"), "details": location or "Unknown"},
    )


def cors_headers(request: Request) -> dict:
    """CORS headers for responses produced outside CORSMiddleware."""
    origin = request.headers.get("origin")
    settings = getattr(request.app.state, "settings", None)
    if not origin or settings is None:
        return {}
    origins = settings.cors_origins
    if "*" not in origins and origin not in origins:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Vary": "Origin",
    }


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("request_failed", path=request.url.path, error=str(exc), exc_info=exc)
    # Runs in ServerErrorMiddleware, outside the CORS layer
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc), "details": str(error_details(exc))},
        headers=cors_headers(request),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GalleryError, gallery_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
