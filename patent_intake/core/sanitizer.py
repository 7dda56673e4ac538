import re

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w.-]+\.\w+")
_IPV4_RE = re.compile(r"\b(\d{1,3}\.\d{1,3}\.\d{1,3}\.)\d{1,3}\b")
# Codice fiscale: 6 letters, 2 digits, month letter, 2 digits, letter, 3 digits, check letter
_CODICE_FISCALE_RE = re.compile(
    r"\b[A-Z]{6}\d{2}[A-EHLMPRST]\d{2}[A-Z]\d{3}[A-Z]\b", re.IGNORECASE
)
_PARTITA_IVA_RE = re.compile(r"\b(?:IT)?\d{11}\b", re.IGNORECASE)
_PHONE_RE = re.compile(r"(?<![\w.])\+?(?:\d[\s-]?){9,12}\d\b")
_SECRET_RE = re.compile(
    r'(password|passwd|pwd|pass|secret)["\']?\s*[:=]\s*["\']?[^"\'&\s]+',
    re.IGNORECASE,
)


def redact_pii(message: str) -> str:
    """Redact personally identifiable information from log messages.

    Masks emails, IPs, Italian tax identifiers (codice fiscale, partita IVA),
    phone numbers and password-like pairs so applicant data submitted through
    the questionnaire never lands verbatim in the logs (GDPR).
    """
    if not isinstance(message, str):
        return str(message)

    # Emails: mario@example.com -> m***@example.com
    message = _EMAIL_RE.sub(
        lambda m: m.group()[0] + "***@" + m.group().split("@")[1],
        message,
    )

    # IPs (IPv4): 192.168.1.100 -> 192.168.1.***
    message = _IPV4_RE.sub(r"\1***", message)

    message = _CODICE_FISCALE_RE.sub("[CF_REDACTED]", message)
    message = _PARTITA_IVA_RE.sub("[PIVA_REDACTED]", message)
    message = _PHONE_RE.sub("[PHONE_REDACTED]", message)

    message = _SECRET_RE.sub(r"\1=[REDACTED]", message)

    return message
