import logging
import time
import uuid

from fastapi import Request

from core.logging import NO_CONTEXT, checkout_session_ctx, request_id_ctx

logger = logging.getLogger("checkout.requests")

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64


def incoming_request_id(request: Request) -> str:
    """Reuse a caller-supplied id when it is usable, otherwise mint one."""
    candidate = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if candidate and len(candidate) <= MAX_REQUEST_ID_LENGTH and candidate.isprintable():
        return candidate
    return uuid.uuid4().hex


async def request_logger(request: Request, call_next):
    request_id = incoming_request_id(request)
    request_token = request_id_ctx.set(request_id)
    session_token = checkout_session_ctx.set(NO_CONTEXT)
    start = time.perf_counter()
    try:
        logger.info(f"-> {request.method} {request.url.path}")
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        logger.info(f"<- {request.method} {request.url.path} [{response.status_code}] ({elapsed:.3f}s)")
    finally:
        checkout_session_ctx.reset(session_token)
        request_id_ctx.reset(request_token)

    response.headers[REQUEST_ID_HEADER] = request_id
    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    return response
