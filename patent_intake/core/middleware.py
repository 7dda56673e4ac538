import logging
import uuid

import structlog
from fastapi import HTTPException, Request
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from patent_intake.core.errors import error_response

logger = logging.getLogger("patent_intake.requests")

# Multipart framing plus the JSON payload field, on top of the attachment ceiling
FORM_OVERHEAD_BYTES = 1024 * 1024


class BodyTooLargeError(HTTPException):
    """Raised from ``receive`` once a streamed body passes the ceiling."""

    def __init__(self, message: str):
        super().__init__(status_code=413, detail=message)


class UploadSizeLimitMiddleware:
    """
    Caps POST bodies at the attachment ceiling plus form overhead.

    A declared Content-Length over the cap is answered with 413 before any
    of the body is read. Bodies without one (chunked uploads) are counted as
    they arrive, and reading stops with 413 at the first chunk past the cap.
    """

    def __init__(self, app: ASGIApp, max_total_bytes: int, limit_label: str):
        self.app = app
        self.max_body_bytes = max_total_bytes + FORM_OVERHEAD_BYTES
        self.message = f"Allegati troppo grandi. Limite totale: {limit_label} MB."

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_body_bytes:
            logger.info(
                "Upload rejected before reading body: %s > %s bytes",
                declared,
                self.max_body_bytes,
            )
            await error_response(413, self.message)(scope, receive, send)
            return

        received = 0
        response_started = False

        async def capped_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.info(
                        "Upload rejected while streaming: >%s bytes (limit %s)",
                        received,
                        self.max_body_bytes,
                    )
                    raise BodyTooLargeError(self.message)
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, capped_receive, tracking_send)
        except BodyTooLargeError:
            # Normally rendered by the HTTPException handler further in
            if response_started:
                raise
            await error_response(413, self.message)(scope, receive, send)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add X-Request-ID header for tracing.

    If the client sends X-Request-ID, it is preserved.
    Otherwise, a new UUID is generated.

    The request ID is:
    - Available in request.state.request_id
    - Bound into structlog contextvars for every log line of the request
    - Returned in response headers for client correlation
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            f"REQUEST | id={request_id} | method={request.method} | path={request.url.path}"
        )

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        return response
