from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence, Tuple

from patent_intake.schemas.submission import (
    CompanyApplicant,
    PersonApplicant,
    Submission,
)

REPORT_TITLE = "== Nuova richiesta: Questionario preliminare brevetto =="

# (label, attribute) pairs; labels are read by the office staff, keep them stable
_Layout = Tuple[Tuple[str, str], ...]

_COMPANY_LAYOUT: _Layout = (
    ("Denominazione", "name"),
    ("Forma giuridica", "legal_form"),
    ("Sede legale", "hq"),
    ("Paese", "country"),
    ("P.IVA", "vat"),
    ("C.F.", "tax_code"),
    ("Email", "email"),
    ("PEC", "pec"),
    ("Telefono", "phone"),
    ("Legale rappresentante", "rep_name"),
    ("C.F. legale rappresentante", "rep_tax_code"),
)

_PERSON_LAYOUT: _Layout = (
    ("Nome e cognome", "full_name"),
    ("C.F.", "tax_code"),
    ("Nascita", "birth_place_date"),
    ("Residenza", "residence"),
    ("Paese", "country"),
    ("Email", "email"),
    ("PEC", "pec"),
    ("Telefono", "phone"),
)


def _format(value: Any) -> str:
    if isinstance(value, bool):
        return "SI" if value else "NO"
    if isinstance(value, (list, tuple)):
        return ", ".join(value)
    return value


def _labelled(record: Any, layout: _Layout, prefix: str = "- ") -> List[str]:
    return [f"{prefix}{label}: {_format(getattr(record, attr))}" for label, attr in layout]


def _fields(layout: _Layout) -> Callable[[Submission], List[str]]:
    return lambda submission: _labelled(submission, layout)


def _applicant_lines(submission: Submission) -> List[str]:
    applicant = submission.applicant
    lines = [f"- Tipo richiedente: {applicant.kind}"]
    if isinstance(applicant, CompanyApplicant):
        lines.extend(_labelled(applicant.company, _COMPANY_LAYOUT))
    elif isinstance(applicant, PersonApplicant):
        lines.extend(_labelled(applicant.person, _PERSON_LAYOUT))
    else:
        lines.append(f"- Contitolari: {applicant.co_owners_text}")
    return lines


def _inventor_lines(submission: Submission) -> List[str]:
    lines: List[str] = []
    for number, inventor in enumerate(submission.inventors, start=1):
        lines.append(f"-- Inventore {number} --")
        lines.extend(_labelled(inventor, _PERSON_LAYOUT, prefix="  "))
    return lines


_SECTIONS: Sequence[Tuple[str, Callable[[Submission], List[str]]]] = (
    ("1) Privacy e consensi", _fields((
        ("Presa visione privacy", "privacy_viewed"),
        ("Consenso contatto", "contact_consent"),
    ))),
    ("2) Richiedente (titolare)", _applicant_lines),
    ("3) Inventore/i", _inventor_lines),
    ("4) Titolo e campo tecnico", _fields((
        ("Titolo", "invention_title"),
        ("Campo tecnico", "technical_field"),
    ))),
    ("5) Riassunto (elevator pitch)", _fields((
        ("Descrizione", "pitch"),
        ("Ambito applicativo", "application_area"),
        ("Beneficio principale", "main_benefit"),
    ))),
    ("6) Stato dell’arte", _fields((
        ("Descrizione", "prior_art_description"),
        ("Link", "prior_art_links"),
        ("Brevetti/pubblicazioni noti", "prior_art_patents"),
    ))),
    ("7) Problema tecnico", _fields((
        ("Problema", "technical_problem"),
        ("Vincoli/requisiti", "constraints"),
        ("Metriche/criteri", "metrics"),
    ))),
    ("8) Soluzione e vantaggi", _fields((
        ("Soluzione", "solution"),
        ("Vantaggi", "advantages"),
        ("Svantaggi/compromessi", "tradeoffs"),
    ))),
    ("9) Caratteristiche innovative", _fields((
        ("Caratteristiche nuove", "innovative_features"),
        ("Indispensabili vs opzionali", "must_have_vs_optional"),
        ("Varianti previste", "variants"),
    ))),
    ("10) Descrizione tecnica", _fields((
        ("Tipologia", "invention_types"),
        ("Architettura/struttura", "architecture"),
        ("Funzionamento", "workflow"),
        ("Materiali/parametri", "parameters"),
        ("Controllo/Software", "control_software"),
        ("Varianti realizzative", "embodiments"),
        ("Limiti/edge cases", "edge_cases"),
    ))),
    ("11) Disegni/figure", _fields((
        ("Disponibilità", "drawings_available"),
        ("Descrizione figure", "figure_descriptions"),
    ))),
    ("12) Prototipo/test", _fields((
        ("Prototipo", "prototype_status"),
        ("Test/simulazioni", "tests_status"),
        ("Risultati", "test_results"),
    ))),
    ("13) Divulgazioni e confidenzialità", _fields((
        ("Già divulgata", "disclosed"),
        ("Come", "disclosure_how"),
        ("Quando/dove", "disclosure_when_where"),
        ("A chi", "disclosure_to_whom"),
        ("Divulgazione futura", "future_disclosure"),
        ("Quando/contesto", "future_disclosure_details"),
        ("NDA con terzi", "nda_signed"),
    ))),
    ("14) Titolarità e rapporti", _fields((
        ("Inventore coincide con richiedente", "inventor_equals_applicant"),
        ("Sviluppata nell’ambito di", "development_context"),
        ("Collaborazione con Università/Ente di ricerca", "university_collab"),
        ("Dettagli collaborazione università", "university_collab_details"),
        ("Contratti/accordi rilevanti", "relevant_agreements"),
        ("Dettagli accordi", "relevant_agreements_details"),
        ("Contributi/licenze di terzi", "third_party_contrib"),
        ("Dettagli terzi", "third_party_details"),
    ))),
    ("15) Caricamento finale e note", _fields((
        ("Note finali", "final_notes"),
    ))),
)


def format_timestamp(moment: datetime) -> str:
    """UTC, millisecond precision, ``Z`` suffix (2026-10-18T09:30:00.000Z)."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def render_report(submission: Submission, now: Optional[datetime] = None) -> str:
    """Render a validated submission into the plain-text report sent by email.

    Every label is always present, empty answers included, so that the
    office can diff two reports line by line. Only the timestamp line depends
    on anything but ``submission``.
    """
    moment = now or datetime.now(timezone.utc)
    lines = [
        REPORT_TITLE,
        "",
        f"Data/ora (server): {format_timestamp(moment)}",
        "",
    ]
    for heading, render in _SECTIONS:
        lines.append(f"== {heading} ==")
        lines.extend(render(submission))
        lines.append("")
    return "\n".join(lines)
