"""
Error handling for the questionnaire API.

Every failure leaves the service in the same envelope the web form expects:

    {"ok": false, "error": "<human readable message>"}

- SubmissionError and subclasses carry their own message and status code
- HTTPException (rate limiting, 404s on unknown routes) keeps its status
- Request validation errors become 400
- Anything else is logged with its traceback and answered with a generic 500

Usage:
    # In main.py
    from patent_intake.core.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Errore interno."


class SubmissionError(Exception):
    """A request that cannot be processed, with the message shown to the user."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MailConfigurationError(SubmissionError):
    """Mail transport or recipient settings are missing."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class MailDeliveryError(SubmissionError):
    """The SMTP server refused or dropped the message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the JSON error envelope handlers on the FastAPI app."""

    @app.exception_handler(SubmissionError)
    async def submission_error_handler(request: Request, exc: SubmissionError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Submission rejected status=%s path=%s error=%s",
            exc.status_code,
            request.url.path,
            exc.message,
            extra={"action": "submission_rejected", "status_code": exc.status_code},
        )
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else GENERIC_ERROR_MESSAGE
        return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(
            "Malformed form on %s: %s", request.url.path, exc.errors()
        )
        return error_response(status.HTTP_400_BAD_REQUEST, "Richiesta non valida.")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        - Logs the full traceback for debugging
        - Returns a generic error message to prevent info leakage
        - In debug mode, includes the exception text
        """
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}:\n"
            f"{traceback.format_exc()}"
        )

        if getattr(request.app.state.settings, "DEBUG", False):
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                f"{type(exc).__name__}: {exc}",
            )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE)
