import copy
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from patent_intake.core.config import Settings
from patent_intake.core.email import SmtpTransport
from patent_intake.main import create_app

# -----------------------------------------------------------------------------
# Payloads
# -----------------------------------------------------------------------------

PERSON_PAYLOAD = {
    "privacyViewed": True,
    "contactConsent": True,
    "applicantType": "Persona fisica",
    "person": {
        "fullName": "Mario Rossi",
        "residence": "Via Roma 1, Milano",
        "country": "Italia",
        "email": "mario.rossi@example.com",
    },
    "inventors": [{"fullName": "A B"}],
    "inventionTitle": "Valvola autoregolante",
    "technicalField": "Idraulica",
    "pitch": "Una valvola che regola la portata senza intervento manuale.",
    "priorArtDescription": "Valvole a regolazione manuale.",
    "technicalProblem": "La regolazione manuale e' lenta e imprecisa.",
    "solution": "Sensore di portata e attuatore in anello chiuso.",
    "advantages": "Risparmio idrico.",
    "innovativeFeatures": "Controllo in anello chiuso integrato nel corpo valvola.",
    "inventionTypes": ["Software"],
    "disclosed": "No",
    "universityCollab": "No",
}

COMPANY = {
    "name": "Idrotec S.r.l.",
    "legalForm": "S.r.l.",
    "hq": "Torino",
    "country": "Italia",
    "vat": "01234567890",
    "email": "brevetti@idrotec.example",
    "repName": "Giulia Bianchi",
}


@pytest.fixture
def person_payload() -> dict:
    return copy.deepcopy(PERSON_PAYLOAD)


@pytest.fixture
def company_payload() -> dict:
    payload = copy.deepcopy(PERSON_PAYLOAD)
    payload["applicantType"] = "Azienda/Ente"
    payload["company"] = copy.deepcopy(COMPANY)
    del payload["person"]
    return payload


@pytest.fixture
def joint_payload() -> dict:
    payload = copy.deepcopy(PERSON_PAYLOAD)
    payload["applicantType"] = "Più soggetti (contitolarità)"
    payload["coOwnersText"] = "Idrotec S.r.l. 60%, Mario Rossi 40%"
    del payload["person"]
    return payload


# -----------------------------------------------------------------------------
# App Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the developer's .env, with a 1 MB upload ceiling."""
    return Settings(
        _env_file=None,
        SMTP_HOST="smtp.test",
        SMTP_PORT=587,
        SMTP_USER="user@test",
        SMTP_PASS="pass",
        RECIPIENT_EMAIL="brevetti@studio.test",
        MAIL_FROM=None,
        MAX_TOTAL_UPLOAD_MB=1,
        STATIC_DIR=str(tmp_path / "public"),
    )


@pytest.fixture
def sent_messages(monkeypatch) -> list:
    """Capture outgoing mail instead of opening an SMTP connection."""
    sent = []

    async def _fake_send(self, message):
        sent.append(message)

    monkeypatch.setattr(SmtpTransport, "send", _fake_send)
    return sent


@pytest.fixture
def client(settings, sent_messages) -> Generator[TestClient, None, None]:
    app = create_app(settings)
    # Using 'with' context manager to trigger lifespan events (startup/shutdown)
    with TestClient(app) as c:
        yield c
