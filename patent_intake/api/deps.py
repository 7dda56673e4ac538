from fastapi import Depends, Request

from patent_intake.core.config import Settings
from patent_intake.services.mail import DisclosureMailService


def get_settings(request: Request) -> Settings:
    """
    Settings the running app was built with.

    Usage:
        @router.post("/submit")
        async def submit(settings: Settings = Depends(get_settings)):
            ...
    """
    return request.app.state.settings


def get_mail_service(settings: Settings = Depends(get_settings)) -> DisclosureMailService:
    """Return the mail service used by the submission endpoint."""
    return DisclosureMailService(settings)
