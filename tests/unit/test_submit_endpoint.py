"""End-to-end tests for POST /api/submit with SMTP faked out."""
import json

import pytest
from fastapi.testclient import TestClient

from patent_intake.core.email import SmtpTransport
from patent_intake.main import create_app

ONE_MB = 1024 * 1024


def submit(client, payload=None, files=None, **fields):
    data = dict(fields)
    if payload is not None:
        data["payload"] = payload if isinstance(payload, str) else json.dumps(payload)
    return client.post("/api/submit", data=data, files=files)


class TestSubmitHappyPath:
    def test_valid_submission_sends_report(self, client, sent_messages, person_payload):
        response = submit(client, person_payload)

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert len(sent_messages) == 1

        msg = sent_messages[0]
        assert msg["To"] == "brevetti@studio.test"
        assert msg["Subject"] == "Questionario brevetto – Valvola autoregolante – Mario Rossi"
        body = msg.get_body(preferencelist=("plain",)).get_content().split("\n")
        assert "- Tipologia: Software" in body
        idx = body.index("-- Inventore 1 --")
        assert body[idx + 1] == "  Nome e cognome: A B"

    def test_attachments_forwarded(self, client, sent_messages, company_payload):
        files = [
            ("attachments", ("disegno.png", b"\x89PNG fake", "image/png")),
            ("attachments", ("relazione.docx", b"PK fake docx",
                             "application/vnd.openxmlformats-officedocument.wordprocessingml.document")),
        ]
        response = submit(client, company_payload, files=files)

        assert response.status_code == 200
        parts = list(sent_messages[0].iter_attachments())
        assert [p.get_filename() for p in parts] == ["disegno.png", "relazione.docx"]
        assert parts[0].get_payload(decode=True) == b"\x89PNG fake"
        assert sent_messages[0]["Reply-To"] == "brevetti@idrotec.example"


class TestFreeTextHeaders:
    def test_multi_line_title(self, client, sent_messages, person_payload):
        person_payload["inventionTitle"] = "Valvola\nautoregolante"
        response = submit(client, person_payload)

        assert response.status_code == 200
        assert sent_messages[0]["Subject"] == (
            "Questionario brevetto – Valvola autoregolante – Mario Rossi"
        )
        body = sent_messages[0].get_body(preferencelist=("plain",)).get_content()
        assert "Valvola\nautoregolante" in body

    def test_multi_line_applicant_email(self, client, sent_messages, person_payload):
        person_payload["person"]["email"] = "mario@example.com\nmario2@example.com"
        response = submit(client, person_payload)

        assert response.status_code == 200
        assert sent_messages[0]["Reply-To"] == "mario@example.com"


class TestHoneypot:
    def test_honeypot_without_payload(self, client, sent_messages):
        response = submit(client, website="http://spam.example")
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert sent_messages == []

    def test_honeypot_with_invalid_payload(self, client, sent_messages):
        response = submit(client, "{not json", website="x")
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert sent_messages == []

    def test_blank_honeypot_is_ignored(self, client, sent_messages, person_payload):
        response = submit(client, person_payload, website="   ")
        assert response.status_code == 200
        assert len(sent_messages) == 1


class TestSubmitValidation:
    def test_missing_payload(self, client, sent_messages):
        response = submit(client)
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Payload mancante."}
        assert sent_messages == []

    def test_malformed_payload(self, client):
        response = submit(client, '{"privacyViewed": tru')
        assert response.status_code == 400
        assert response.json()["error"] == "Payload mancante."

    def test_first_failing_rule_reported(self, client, sent_messages, person_payload):
        person_payload["privacyViewed"] = False
        person_payload["inventionTitle"] = ""
        response = submit(client, person_payload)
        assert response.status_code == 400
        assert response.json() == {
            "ok": False,
            "error": "Privacy: presa visione obbligatoria.",
        }
        assert sent_messages == []

    def test_company_branch_rule(self, client, company_payload):
        company_payload["company"]["email"] = ""
        response = submit(client, company_payload)
        assert response.status_code == 400
        assert response.json()["error"] == "Azienda: email obbligatoria."


class TestIngressFilter:
    def test_disallowed_type(self, client, sent_messages, person_payload):
        files = [("attachments", ("setup.exe", b"MZ", "application/x-msdownload"))]
        response = submit(client, person_payload, files=files)
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Tipo di file non consentito."}
        assert sent_messages == []

    def test_total_exactly_at_ceiling_accepted(self, client, sent_messages, person_payload):
        half = ONE_MB // 2
        files = [
            ("attachments", ("a.zip", b"a" * half, "application/zip")),
            ("attachments", ("b.zip", b"b" * half, "application/zip")),
        ]
        response = submit(client, person_payload, files=files)
        assert response.status_code == 200
        assert len(sent_messages) == 1

    def test_one_byte_over_ceiling_rejected(self, client, sent_messages, person_payload):
        half = ONE_MB // 2
        files = [
            ("attachments", ("a.zip", b"a" * half, "application/zip")),
            ("attachments", ("b.zip", b"b" * (half + 1), "application/zip")),
        ]
        response = submit(client, person_payload, files=files)
        assert response.status_code == 413
        assert response.json() == {
            "ok": False,
            "error": "Allegati troppo grandi. Limite totale: 1 MB.",
        }
        assert sent_messages == []

    def test_too_many_attachments(self, client, settings, person_payload):
        files = [
            ("attachments", (f"f{i}.txt", b"x", "text/plain"))
            for i in range(settings.MAX_ATTACHMENTS + 1)
        ]
        response = submit(client, person_payload, files=files)
        assert response.status_code == 400
        assert response.json()["error"] == "Troppi allegati: massimo 20 file."


class TestServerErrors:
    def test_missing_recipient_is_500(self, settings, sent_messages, person_payload):
        settings.RECIPIENT_EMAIL = None
        with TestClient(create_app(settings)) as client:
            response = submit(client, person_payload)
        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "RECIPIENT_EMAIL non configurata."}
        assert sent_messages == []

    def test_missing_smtp_credentials_is_500(self, settings, sent_messages, person_payload):
        settings.SMTP_PASS = None
        with TestClient(create_app(settings)) as client:
            response = submit(client, person_payload)
        assert response.status_code == 500
        assert response.json()["error"] == (
            "SMTP non configurato: verifica SMTP_HOST/SMTP_USER/SMTP_PASS."
        )
        assert sent_messages == []

    def test_transmission_failure_is_500(self, client, monkeypatch, person_payload):
        async def _boom(self, message):
            raise ConnectionRefusedError("smtp down")

        monkeypatch.setattr(SmtpTransport, "send", _boom)
        response = submit(client, person_payload)
        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "Invio email non riuscito."}


class TestRateLimit:
    @pytest.fixture
    def settings(self, settings):
        settings.RATE_LIMIT_MAX_REQUESTS = 2
        return settings

    def test_third_request_in_window_rejected(self, client, sent_messages, person_payload):
        assert submit(client, person_payload).status_code == 200
        assert submit(client, person_payload).status_code == 200

        blocked = submit(client, person_payload)
        assert blocked.status_code == 429
        assert blocked.json() == {"ok": False, "error": "Troppe richieste, riprova più tardi."}
        assert int(blocked.headers["Retry-After"]) > 0
        assert len(sent_messages) == 2

    def test_health_not_rate_limited(self, client):
        for _ in range(5):
            assert client.get("/health").status_code == 200


def multipart_chunks(payload: dict, extra_file: bytes, boundary: str = "questionario"):
    """Hand-built multipart body, yielded in pieces so it goes out chunked."""
    head = (
        f"--{boundary}\r\n"
        'Content-Disposition: form-data; name="payload"\r\n\r\n'
        f"{json.dumps(payload)}\r\n"
        f"--{boundary}\r\n"
        'Content-Disposition: form-data; name="junk"; filename="junk.bin"\r\n'
        "Content-Type: application/octet-stream\r\n\r\n"
    ).encode()
    tail = f"\r\n--{boundary}--\r\n".encode()
    body = head + extra_file + tail
    for start in range(0, len(body), 64 * 1024):
        yield body[start:start + 64 * 1024]


class TestChunkedUpload:
    headers = {"Content-Type": "multipart/form-data; boundary=questionario"}

    def test_oversize_chunked_body_rejected(self, client, sent_messages, person_payload):
        response = client.post(
            "/api/submit",
            content=multipart_chunks(person_payload, b"j" * (3 * ONE_MB)),
            headers=self.headers,
        )
        assert response.status_code == 413
        assert response.json() == {
            "ok": False,
            "error": "Allegati troppo grandi. Limite totale: 1 MB.",
        }
        assert sent_messages == []

    def test_small_chunked_body_accepted(self, client, sent_messages, person_payload):
        response = client.post(
            "/api/submit",
            content=multipart_chunks(person_payload, b"j" * 1024),
            headers=self.headers,
        )
        assert response.status_code == 200
        assert len(sent_messages) == 1
