"""
Candidature validation engine.

Turns a raw submission into a ``CandidatureRecord`` or raises a
``CandidatureValidationError`` listing every violation found in one pass.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from models.candidature import CandidatureRecord
from utils.errors import CandidatureValidationError, FieldError


FINANCING_DETAILS = ("institutionFinancement", "contactFinancement", "emailContactFinancement")

# Financing mode -> fields that become required (wire names)
FINANCING_REQUIREMENTS: Dict[str, Tuple[str, ...]] = {
    "Vous-même": (),
    "Institution": FINANCING_DETAILS,
    "Autre": FINANCING_DETAILS,
}

REQUIRED_MESSAGE = "champ requis"

# Wire names in schema declaration order, used to sort errors
FIELD_ORDER: List[str] = [
    field.alias or name for name, field in CandidatureRecord.model_fields.items()
]

_DATE_ERRORS = {
    "date_type",
    "date_parsing",
    "date_from_datetime_parsing",
    "date_from_datetime_inexact",
    "date_future",
}
_BODY_ERRORS = {"model_type", "model_attributes_type", "dict_type"}
# FastAPI prefixes request errors with where the value came from
_REQUEST_LOCATIONS = ("body", "query", "path", "header")


def validate_candidature(raw: Any, today: Optional[date] = None) -> CandidatureRecord:
    """
    Validate and normalize a raw submission

    Args:
        raw: Decoded JSON body
        today: Reference date for the minimum age check (defaults to today)

    Returns:
        Normalized CandidatureRecord

    Raises:
        CandidatureValidationError: with every field error found
    """
    errors: List[FieldError] = []
    record: Optional[CandidatureRecord] = None

    try:
        record = CandidatureRecord.model_validate(raw, context={"today": today or date.today()})
    except ValidationError as exc:
        errors.extend(to_field_error(error) for error in exc.errors())

    errors.extend(financing_errors(raw))

    if errors:
        raise CandidatureValidationError(sort_errors(errors))
    return record


def financing_errors(raw: Any) -> List[FieldError]:
    """Required-field errors for the financing details the selected mode demands"""
    if not isinstance(raw, dict):
        return []
    mode = raw.get("mode")
    if not isinstance(mode, str):
        return []

    errors = []
    for field in FINANCING_REQUIREMENTS.get(mode, ()):
        value = raw.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(FieldError(field, REQUIRED_MESSAGE))
    return errors


def sort_errors(errors: List[FieldError]) -> List[FieldError]:
    """Stable sort by schema field order; unknown locations go last"""
    def position(error: FieldError) -> int:
        top = error.field.split(".", 1)[0]
        return FIELD_ORDER.index(top) if top in FIELD_ORDER else len(FIELD_ORDER)

    return sorted(errors, key=position)


def to_field_error(error: Dict[str, Any]) -> FieldError:
    """Translate one pydantic error dict into a wire-named FieldError"""
    loc = error.get("loc") or ()
    error_type = error.get("type", "")
    if loc and loc[0] in _REQUEST_LOCATIONS:
        loc = loc[1:]
    field = ".".join(str(part) for part in loc) if loc else "body"
    return FieldError(field, _message(error_type, error))


def _message(error_type: str, error: Dict[str, Any]) -> str:
    ctx = error.get("ctx") or {}

    if error_type == "missing":
        return REQUIRED_MESSAGE
    if error_type == "string_too_short":
        return "ne peut pas être vide"
    if error_type == "string_too_long":
        return f"{ctx.get('max_length')} caractères maximum"
    if error_type == "string_type":
        return "doit être une chaîne de caractères"
    if error_type == "string_pattern_mismatch":
        return "format invalide"
    if error_type == "too_short":
        return f"au moins {ctx.get('min_length')} élément(s) requis"
    if error_type == "list_type":
        return "doit être une liste"
    if error_type in _BODY_ERRORS:
        return "doit être un objet JSON"
    if error_type in _DATE_ERRORS:
        return "date ISO invalide (AAAA-MM-JJ)"
    if error_type in ("bool_type", "bool_parsing"):
        return "doit être un booléen"
    if error_type == "value_error" and "email" in error.get("msg", ""):
        return "adresse email invalide"
    return error.get("msg", "valeur invalide")
