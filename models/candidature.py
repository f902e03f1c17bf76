"""
Candidature data models
"""

import re
from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, get_args
from uuid import UUID

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    StrictBool,
    StringConstraints,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError

from utils.level_normalizer import LevelNormalizer


MINIMUM_AGE = 18
PHONE_PATTERN = r"^\+?[1-9][0-9]{7,14}$"
ISO_DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
EMAIL_MAX_LENGTH = 150


def compute_age(birth_date: date, today: date) -> int:
    """Age in completed years: decremented when the anniversary has not happened yet this year"""
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _max_length(limit: int):
    def check(value: str) -> str:
        if len(value) > limit:
            raise PydanticCustomError(
                "string_too_long",
                "String should have at most {max_length} characters",
                {"max_length": limit},
            )
        return value
    return check


def _canonical_level(value: str) -> str:
    level = LevelNormalizer.normalize(value)
    if level is None:
        raise PydanticCustomError(
            "level_enum",
            "doit être l'une des valeurs: {expected}",
            {"expected": ", ".join(LevelNormalizer.CANONICAL_LEVELS)},
        )
    return level


def _iso_date(value: Any) -> Any:
    # stored rows come back as date objects; form input must be an ISO string
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value.strip()):
        raise PydanticCustomError("date_type", "Input should be an ISO date string")
    return value.strip()


def _boolean(value: Any) -> Any:
    """JSON booleans, or the strings "true"/"false" in any case"""
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return value


def _unique_languages(value: Any) -> Any:
    if not isinstance(value, dict):
        return value
    seen = set()
    for key in value:
        language = key.strip() if isinstance(key, str) else key
        if language in seen:
            raise PydanticCustomError(
                "duplicate_language",
                "langue en double: {language}",
                {"language": language},
            )
        seen.add(language)
    return value


def _one_of(choices):
    """Closed set of strings, reported with a French enum message"""
    allowed = get_args(choices)

    def check(value: Any) -> Any:
        if value not in allowed:
            raise PydanticCustomError(
                "enum_value",
                "doit être l'une des valeurs: {expected}",
                {"expected": ", ".join(allowed)},
            )
        return value
    return Annotated[choices, BeforeValidator(check)]


def _text(max_length: int):
    return Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=max_length)]


def _optional_text(max_length: int):
    return Annotated[
        Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=max_length)]],
        BeforeValidator(_blank_to_none),
    ]


Email = Annotated[EmailStr, BeforeValidator(_strip), AfterValidator(_max_length(EMAIL_MAX_LENGTH))]
OptionalEmail = Annotated[Optional[Email], BeforeValidator(_blank_to_none)]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, pattern=PHONE_PATTERN)]
LanguageName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Level = Annotated[str, AfterValidator(_canonical_level)]
Levels = Annotated[Dict[LanguageName, Level], BeforeValidator(_unique_languages)]
BirthDate = Annotated[date, BeforeValidator(_iso_date)]
Consent = Annotated[StrictBool, BeforeValidator(_boolean)]

Sexe = _one_of(Literal["Homme", "Femme", "Autre"])
FinancingMode = _one_of(Literal["Vous-même", "Institution", "Autre"])


class CandidatureRecord(BaseModel):
    """
    Validated candidature, as persisted.

    Attribute names are the storage column names; aliases are the
    camelCase keys of the submitted form. Unknown keys are ignored.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    # Person
    nom: _text(100)
    prenom: _text(100)
    nationalite: _text(50)
    sexe: Sexe
    date_naissance: BirthDate = Field(alias="dateNaissance")
    lieu_naissance: _text(50) = Field(alias="lieuNaissance")
    telephone: Phone
    email: Email

    # Professional
    organisation: _optional_text(200) = None
    pays: _text(50)
    departement: _optional_text(100) = None
    poste_actuel: _text(100) = Field(alias="posteActuel")
    description_taches: _text(500) = Field(alias="descriptionTaches")

    # Academic
    diplome: _text(50)
    institution: _text(200)
    domaine: _text(100)

    # Languages
    langues: List[LanguageName] = Field(min_length=1)
    niveaux: Levels

    # Expectations
    resultats_attendus: _text(500) = Field(alias="resultatsAttendus")
    autres_infos: _optional_text(1000) = Field(default=None, alias="autresInfos")

    # Financing
    mode_financement: FinancingMode = Field(alias="mode")
    institution_financement: _optional_text(200) = Field(default=None, alias="institutionFinancement")
    contact_financement: _optional_text(100) = Field(default=None, alias="contactFinancement")
    email_contact_financement: OptionalEmail = Field(default=None, alias="emailContactFinancement")

    # Provenance
    source_information: _text(50) = Field(alias="source")
    consentement: Consent

    @field_validator("date_naissance")
    @classmethod
    def _check_minimum_age(cls, value: date, info: ValidationInfo) -> date:
        today = (info.context or {}).get("today") or date.today()
        if compute_age(value, today) < MINIMUM_AGE:
            raise PydanticCustomError("minimum_age", "Âge minimum {minimum} ans", {"minimum": MINIMUM_AGE})
        return value

    @property
    def full_name(self) -> str:
        return f"{self.prenom} {self.nom}"

    @property
    def has_financing_details(self) -> bool:
        return self.mode_financement in ("Institution", "Autre")

    def to_row(self) -> Dict[str, Any]:
        """Column name -> value mapping used for the insert"""
        return self.model_dump()

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CandidatureRecord":
        """Rebuild a record from a stored row (column names)"""
        data = {
            (field.alias or name): row.get(name)
            for name, field in cls.model_fields.items()
        }
        # rows were age-checked at submission; date.max keeps that check from firing again
        return cls.model_validate(data, context={"today": date.max})


class CandidatureIdentity(BaseModel):
    """Server-assigned identity of a stored candidature"""
    id: int
    uuid: UUID
    date_soumission: datetime


class StoredCandidature(BaseModel):
    """A candidature read back from storage"""
    identity: CandidatureIdentity
    record: CandidatureRecord
