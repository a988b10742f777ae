import logging
from typing import Any, Dict

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("checkout")


class ApiError(Exception):
    """Error whose JSON body is sent to the caller as-is."""

    def __init__(self, status_code: int, content: Dict[str, Any]):
        super().__init__(content.get("message") or content.get("error"))
        self.status_code = status_code
        self.content = content


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.content))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "error": "Invalid request",
            "message": "Request body failed validation",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def internal_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "details": str(exc),
        },
    )
