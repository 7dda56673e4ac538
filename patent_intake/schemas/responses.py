"""
Response envelopes for the questionnaire API.

The web form only ever looks at ``ok`` and, on failure, ``error``.
"""
from typing import Literal

from pydantic import BaseModel, Field


class SubmitResponse(BaseModel):
    ok: Literal[True] = True


class ErrorResponse(BaseModel):
    ok: Literal[False] = False
    error: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Titolo invenzione obbligatorio."],
    )


# Common error responses for OpenAPI documentation
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
    413: {"model": ErrorResponse, "description": "Attachments too large"},
    429: {"model": ErrorResponse, "description": "Rate Limit Exceeded"},
    500: {"model": ErrorResponse, "description": "Mail configuration or delivery failure"},
}
