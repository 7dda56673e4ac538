"""
Questionnaire submission.

Public endpoint receiving the patent-disclosure questionnaire from the web
form, with optional attachments, and forwarding it by email.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from patent_intake.api.deps import get_mail_service, get_settings
from patent_intake.core.config import Settings
from patent_intake.core.rate_limiter import check_submit_rate_limit
from patent_intake.schemas.responses import ERROR_RESPONSES, SubmitResponse
from patent_intake.schemas.submission import Submission, safe_str
from patent_intake.services.attachments import AttachmentReader, total_size
from patent_intake.services.mail import DisclosureMailService
from patent_intake.services.report import render_report
from patent_intake.services.validation import (
    ValidationContext,
    parse_payload,
    validate_submission,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/submit",
    response_model=SubmitResponse,
    responses=ERROR_RESPONSES,
    summary="Invia il questionario preliminare brevetto",
    description="Valida il questionario, genera il report testuale e lo invia via email con gli allegati.",
    dependencies=[Depends(check_submit_rate_limit)],
)
async def submit_questionnaire(
    payload: Optional[str] = Form(None),
    website: Optional[str] = Form(None),
    attachments: Optional[List[UploadFile]] = File(None),
    settings: Settings = Depends(get_settings),
    service: DisclosureMailService = Depends(get_mail_service),
) -> SubmitResponse:
    """Validate, render and email one questionnaire."""
    files = await AttachmentReader(settings).read_all(attachments or [])

    # Honeypot: bots get the same answer as people, and nothing is sent
    if safe_str(website):
        logger.info(
            "Honeypot field filled, submission discarded",
            extra={"action": "honeypot_triggered"},
        )
        return SubmitResponse()

    data = parse_payload(payload)
    validate_submission(
        ValidationContext(
            payload=data,
            attachment_bytes=total_size(files),
            max_total_bytes=settings.max_total_bytes,
            limit_label=settings.max_total_label,
            recipient=settings.RECIPIENT_EMAIL,
        )
    )

    transport = service.transport()
    submission = Submission.from_payload(data)
    message = service.build_email_message(
        submission,
        render_report(submission),
        files,
    )
    await service.send(transport, message)

    logger.info(
        "AUDIT: Questionnaire delivered applicant_type=%s inventors=%s attachments=%s bytes=%s",
        submission.applicant.kind,
        len(submission.inventors),
        len(files),
        total_size(files),
        extra={"action": "questionnaire_delivered"},
    )
    return SubmitResponse()
