"""
Liveness probe.

Answers a fixed plain-text body; it does not touch SMTP or any other
collaborator, so it stays green while mail delivery is misconfigured.
"""
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_class=PlainTextResponse,
    summary="Health check",
)
async def health_check() -> str:
    return "OK"
