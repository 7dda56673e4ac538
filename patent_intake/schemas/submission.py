"""
Typed view of a questionnaire payload.

The web form posts camelCase JSON. Every text accessor here is tolerant:
absent keys, ``null`` values and missing nested objects all collapse to an
empty string, so rendering never has to null-check. Requiredness is not
enforced here (see services.validation); these models describe a payload that
has already passed the rule table.
"""
from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

APPLICANT_PERSON = "Persona fisica"
APPLICANT_COMPANY = "Azienda/Ente"
APPLICANT_JOINT = "Più soggetti (contitolarità)"
APPLICANT_TYPES = (APPLICANT_PERSON, APPLICANT_COMPANY, APPLICANT_JOINT)

YES_NO_UNKNOWN = ("No", "Sì", "Non so")


def safe_str(value: Any) -> str:
    """Stringify and trim; ``None`` becomes ``""``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def as_mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _list_item(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _text_list(value: Any) -> List[str]:
    return [_list_item(item) for item in as_list(value)]


def _mapping_list(value: Any) -> List[dict]:
    return [as_mapping(item) for item in as_list(value)]


def _link_list(value: Any) -> List[str]:
    # Blank rows left in the form are dropped
    return [_list_item(item) for item in as_list(value) if item]


Text = Annotated[str, BeforeValidator(safe_str)]
TextList = Annotated[List[str], BeforeValidator(_text_list)]
LinkList = Annotated[List[str], BeforeValidator(_link_list)]
Flag = Annotated[bool, BeforeValidator(bool)]


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class CompanyDetails(_Record):
    name: Text = ""
    legal_form: Text = ""
    hq: Text = ""
    country: Text = ""
    vat: Text = ""
    tax_code: Text = ""
    email: Text = ""
    pec: Text = ""
    phone: Text = ""
    rep_name: Text = ""
    rep_tax_code: Text = ""


class PersonDetails(_Record):
    full_name: Text = ""
    tax_code: Text = ""
    birth_place_date: Text = ""
    residence: Text = ""
    country: Text = ""
    email: Text = ""
    pec: Text = ""
    phone: Text = ""


class InventorDetails(PersonDetails):
    """Inventors share the natural-person record layout."""


class CompanyApplicant(_Record):
    kind: Literal["Azienda/Ente"] = APPLICANT_COMPANY
    company: Annotated[CompanyDetails, BeforeValidator(as_mapping)] = CompanyDetails()

    @property
    def label(self) -> str:
        return self.company.name

    @property
    def reply_to(self) -> Optional[str]:
        return self.company.email or None


class PersonApplicant(_Record):
    kind: Literal["Persona fisica"] = APPLICANT_PERSON
    person: Annotated[PersonDetails, BeforeValidator(as_mapping)] = PersonDetails()

    @property
    def label(self) -> str:
        return self.person.full_name

    @property
    def reply_to(self) -> Optional[str]:
        return self.person.email or None


class JointApplicant(_Record):
    kind: Literal["Più soggetti (contitolarità)"] = APPLICANT_JOINT
    co_owners_text: Text = ""

    @property
    def label(self) -> str:
        return "Contitolarità"

    @property
    def reply_to(self) -> Optional[str]:
        # Co-owners have no single contact address
        return None


Applicant = Annotated[
    Union[CompanyApplicant, PersonApplicant, JointApplicant],
    Field(discriminator="kind"),
]


class Submission(_Record):
    """One decoded questionnaire, sections 1 to 15 of the form."""

    # 1) Privacy e consensi
    privacy_viewed: Flag = False
    contact_consent: Flag = False

    # 2) Richiedente
    applicant: Applicant

    # 3) Inventori
    inventors: Annotated[
        List[InventorDetails],
        BeforeValidator(_mapping_list),
    ] = Field(default_factory=list)

    # 4-5) Titolo, campo tecnico, riassunto
    invention_title: Text = ""
    technical_field: Text = ""
    pitch: Text = ""
    application_area: Text = ""
    main_benefit: Text = ""

    # 6) Stato dell'arte
    prior_art_description: Text = ""
    prior_art_links: LinkList = Field(default_factory=list)
    prior_art_patents: Text = ""

    # 7) Problema tecnico
    technical_problem: Text = ""
    constraints: Text = ""
    metrics: Text = ""

    # 8) Soluzione e vantaggi
    solution: Text = ""
    advantages: Text = ""
    tradeoffs: Text = ""

    # 9) Caratteristiche innovative
    innovative_features: Text = ""
    must_have_vs_optional: Text = ""
    variants: Text = ""

    # 10) Descrizione tecnica
    invention_types: TextList = Field(default_factory=list)
    architecture: Text = ""
    workflow: Text = ""
    parameters: Text = ""
    control_software: Text = ""
    embodiments: Text = ""
    edge_cases: Text = ""

    # 11) Disegni
    drawings_available: Text = ""
    figure_descriptions: Text = ""

    # 12) Prototipo e test
    prototype_status: Text = ""
    tests_status: Text = ""
    test_results: Text = ""

    # 13) Divulgazioni
    disclosed: Text = ""
    disclosure_how: Text = ""
    disclosure_when_where: Text = ""
    disclosure_to_whom: Text = ""
    future_disclosure: Text = ""
    future_disclosure_details: Text = ""
    nda_signed: Text = ""

    # 14) Titolarità e rapporti
    inventor_equals_applicant: Text = ""
    development_context: TextList = Field(default_factory=list)
    university_collab: Text = ""
    university_collab_details: Text = ""
    relevant_agreements: Text = ""
    relevant_agreements_details: Text = ""
    third_party_contrib: Text = ""
    third_party_details: Text = ""

    # 15) Note finali
    final_notes: Text = ""

    @model_validator(mode="before")
    @classmethod
    def _select_applicant(cls, data: Any) -> Any:
        """Keep only the ownership sub-record matching ``applicantType``."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        kind = data.get("applicantType")
        if kind == APPLICANT_COMPANY:
            data["applicant"] = {"kind": kind, "company": data.get("company")}
        elif kind == APPLICANT_PERSON:
            data["applicant"] = {"kind": kind, "person": data.get("person")}
        else:
            data["applicant"] = {"kind": APPLICANT_JOINT, "coOwnersText": data.get("coOwnersText")}
        return data

    @classmethod
    def from_payload(cls, data: dict) -> "Submission":
        return cls.model_validate(data)
