from __future__ import annotations

import logging
from email.message import EmailMessage
from typing import Optional, Sequence

from patent_intake.core.config import Settings
from patent_intake.core.email import SmtpTransport, make_transport
from patent_intake.core.errors import MailConfigurationError, MailDeliveryError
from patent_intake.schemas.submission import Submission
from patent_intake.services.attachments import SubmissionAttachment

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "Questionario brevetto"
FALLBACK_APPLICANT_LABEL = "Richiedente"
DELIVERY_FAILED_MESSAGE = "Invio email non riuscito."


def single_line(value: str) -> str:
    """Collapse every run of whitespace, line breaks included, to one space."""
    return " ".join(value.split())


def build_subject(submission: Submission) -> str:
    label = single_line(submission.applicant.label) or FALLBACK_APPLICANT_LABEL
    return f"{SUBJECT_PREFIX} – {single_line(submission.invention_title)} – {label}"


def reply_address(submission: Submission) -> Optional[str]:
    """First address the applicant typed; header values must stay on one line."""
    tokens = (submission.applicant.reply_to or "").split()
    return tokens[0] if tokens else None


class DisclosureMailService:
    """Compose and deliver the questionnaire report to the patent office."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def transport(self) -> SmtpTransport:
        """Raise MailConfigurationError when SMTP credentials are missing."""
        return make_transport(self.settings)

    def build_email_message(
        self,
        submission: Submission,
        report: str,
        attachments: Sequence[SubmissionAttachment],
    ) -> EmailMessage:
        if not self.settings.RECIPIENT_EMAIL:
            raise MailConfigurationError("RECIPIENT_EMAIL non configurata.")

        msg = EmailMessage()
        msg["From"] = self.settings.MAIL_FROM or self.settings.SMTP_USER or ""
        msg["To"] = self.settings.RECIPIENT_EMAIL
        reply_to = reply_address(submission)
        if reply_to:
            msg["Reply-To"] = reply_to
        msg["Subject"] = build_subject(submission)

        msg.set_content(report)

        for attachment in attachments:
            maintype, subtype = ("application", "octet-stream")
            media_type = attachment.content_type.split(";", 1)[0].strip()
            if "/" in media_type:
                maintype, subtype = media_type.split("/", 1)
            msg.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype,
                filename=attachment.filename,
            )

        return msg

    async def send(self, transport: SmtpTransport, message: EmailMessage) -> None:
        """Single delivery attempt; failures surface as MailDeliveryError."""
        try:
            await transport.send(message)
        except Exception as exc:
            logger.error(
                "Questionnaire delivery failed host=%s error=%s",
                transport.host,
                exc,
                extra={"action": "questionnaire_delivery_failed"},
            )
            raise MailDeliveryError(DELIVERY_FAILED_MESSAGE) from exc
