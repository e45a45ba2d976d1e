from contextlib import contextmanager
from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from logger import get_logger

logger = get_logger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, error: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error = error


async def api_error_handler(request: Request, exc: ApiError):
    content = {"success": False, "message": exc.message}
    if exc.error is not None:
        content["error"] = exc.error
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report the first body field pydantic rejected, in the ApiError body shape."""
    first = exc.errors()[0]
    fields = [part for part in first.get("loc", ()) if isinstance(part, str) and part != "body"]
    field = fields[-1] if fields else "body"
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": f"Invalid {field}", "error": first.get("msg")},
    )


@contextmanager
def storage_errors(message: str):
    """Turn a storage failure inside the block into a 500 with ``message``."""
    try:
        yield
    except PyMongoError as e:
        logger.exception(message)
        raise ApiError(500, message, error=str(e)) from e
