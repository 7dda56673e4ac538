"""
Ordered rule table for questionnaire submissions.

Rules run top to bottom and the first one that fails aborts the request, so
the order below is also the order in which a user discovers problems.
Later predicates may assume every earlier rule held (e.g. that the payload
is a JSON object).

The honeypot check is not in the table: it happens in the route before the
payload is even parsed, and it answers with a silent success.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type

from fastapi import status

from patent_intake.core.errors import MailConfigurationError, SubmissionError
from patent_intake.schemas.submission import (
    APPLICANT_COMPANY,
    APPLICANT_PERSON,
    APPLICANT_TYPES,
    YES_NO_UNKNOWN,
    as_list,
    as_mapping,
    safe_str,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationContext:
    """Everything the rule table looks at for one request."""

    payload: Any
    attachment_bytes: int
    max_total_bytes: int
    limit_label: str
    recipient: Optional[str]


@dataclass(frozen=True)
class Rule:
    check: Callable[[ValidationContext], bool]
    message: str
    status_code: int = status.HTTP_400_BAD_REQUEST
    error: Type[SubmissionError] = SubmissionError

    def failure(self, ctx: ValidationContext) -> SubmissionError:
        return self.error(self.message.format(limit=ctx.limit_label), self.status_code)


def _text(data: Any, *path: str) -> str:
    """Follow ``path`` through nested objects; anything missing reads as ``""``."""
    value = data
    for key in path:
        value = as_mapping(value).get(key)
    return safe_str(value)


def _required(*path: str) -> Callable[[ValidationContext], bool]:
    return lambda ctx: bool(_text(ctx.payload, *path))


def _required_for(applicant_type: str, *path: str) -> Callable[[ValidationContext], bool]:
    return lambda ctx: (
        ctx.payload.get("applicantType") != applicant_type
        or bool(_text(ctx.payload, *path))
    )


def _one_of(key: str, choices: Tuple[str, ...]) -> Callable[[ValidationContext], bool]:
    return lambda ctx: isinstance(ctx.payload.get(key), str) and ctx.payload[key] in choices


def _non_empty_list(key: str) -> Callable[[ValidationContext], bool]:
    return lambda ctx: len(as_list(ctx.payload.get(key))) > 0


def _first_inventor_named(ctx: ValidationContext) -> bool:
    inventors = as_list(ctx.payload.get("inventors"))
    return bool(_text(inventors[0], "fullName"))


SUBMISSION_RULES: Tuple[Rule, ...] = (
    Rule(lambda ctx: isinstance(ctx.payload, dict), "Payload mancante."),
    Rule(lambda ctx: ctx.payload.get("privacyViewed") is True, "Privacy: presa visione obbligatoria."),
    Rule(lambda ctx: ctx.payload.get("contactConsent") is True, "Consenso contatto obbligatorio."),
    Rule(_one_of("applicantType", APPLICANT_TYPES), "Tipo richiedente non valido."),
    Rule(_required("inventionTitle"), "Titolo invenzione obbligatorio."),
    Rule(_required("technicalField"), "Campo tecnico obbligatorio."),
    Rule(_required("pitch"), "Riassunto invenzione obbligatorio."),
    Rule(_required("priorArtDescription"), "Stato dell’arte: descrizione obbligatoria."),
    Rule(_required("technicalProblem"), "Problema tecnico obbligatorio."),
    Rule(_required("solution"), "Soluzione proposta obbligatoria."),
    Rule(_required("advantages"), "Vantaggi tecnici obbligatori."),
    Rule(_required("innovativeFeatures"), "Caratteristiche innovative obbligatorie."),
    Rule(_non_empty_list("inventionTypes"), "Tipologia di invenzione obbligatoria."),
    Rule(_one_of("disclosed", YES_NO_UNKNOWN), "Divulgazione: selezione obbligatoria."),
    Rule(
        _one_of("universityCollab", YES_NO_UNKNOWN),
        "Collaborazione università: selezione obbligatoria.",
    ),
    # Applicant identity; the joint-ownership type has no extra fields
    Rule(_required_for(APPLICANT_COMPANY, "company", "name"), "Azienda: denominazione obbligatoria."),
    Rule(_required_for(APPLICANT_COMPANY, "company", "hq"), "Azienda: sede legale obbligatoria."),
    Rule(_required_for(APPLICANT_COMPANY, "company", "country"), "Azienda: paese obbligatorio."),
    Rule(_required_for(APPLICANT_COMPANY, "company", "email"), "Azienda: email obbligatoria."),
    Rule(_required_for(APPLICANT_PERSON, "person", "fullName"), "Persona: nome e cognome obbligatorio."),
    Rule(_required_for(APPLICANT_PERSON, "person", "residence"), "Persona: residenza obbligatoria."),
    Rule(_required_for(APPLICANT_PERSON, "person", "country"), "Persona: paese obbligatorio."),
    Rule(_required_for(APPLICANT_PERSON, "person", "email"), "Persona: email obbligatoria."),
    Rule(_non_empty_list("inventors"), "Inserire almeno un inventore."),
    Rule(_first_inventor_named, "Inventore 1: nome e cognome obbligatorio."),
    # Repeats the ingress cap on the assembled attachment set
    Rule(
        lambda ctx: ctx.attachment_bytes <= ctx.max_total_bytes,
        "Allegati troppo grandi. Limite totale: {limit} MB.",
    ),
    Rule(
        lambda ctx: bool(ctx.recipient),
        "RECIPIENT_EMAIL non configurata.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error=MailConfigurationError,
    ),
)


def first_failure(ctx: ValidationContext) -> Optional[Rule]:
    """Return the first rule ``ctx`` breaks, or ``None`` when all hold."""
    for rule in SUBMISSION_RULES:
        if not rule.check(ctx):
            return rule
    return None


def validate_submission(ctx: ValidationContext) -> None:
    """Raise the first failing rule as a SubmissionError."""
    rule = first_failure(ctx)
    if rule is not None:
        logger.debug("Validation stopped at rule: %s", rule.message)
        raise rule.failure(ctx)


def parse_payload(raw: Optional[str]) -> Any:
    """Decode the ``payload`` form field; malformed or absent JSON yields ``None``."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.info("Payload is not valid JSON (%d chars)", len(raw))
        return None
