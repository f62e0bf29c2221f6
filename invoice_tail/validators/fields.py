"""Format validators for Italian invoice fields.

One canonical set, shared by the customer save endpoint, the shop company-data
endpoint and any form-level check. Each validator takes a single string and
returns None when valid, or an Italian error message.

Required fields return MISSING_FIELD on empty input so callers can tell
"missing" apart from "malformed". Optional fields (pec, codice_sdi) accept
empty input.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping

from invoice_tail.eligibility.policy import required_fields
from invoice_tail.models.enums import CustomerType, parse_customer_type

Validator = Callable[[str], str | None]

MISSING_FIELD = "Campo obbligatorio"

_PARTITA_IVA = re.compile(r"\d{11}", re.ASCII)
_CF_PERSONAL = re.compile(r"[A-Z0-9]{16}", re.IGNORECASE | re.ASCII)
_CF_NUMERIC = re.compile(r"\d{11}", re.ASCII)
_PEC = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_CODICE_SDI = re.compile(r"[A-Z0-9]{7}", re.IGNORECASE | re.ASCII)
_CAP = re.compile(r"\d{5}", re.ASCII)
_PROVINCIA = re.compile(r"[A-Z]{2}", re.IGNORECASE | re.ASCII)


# ── Single-field validators ──────────────────────────────────────────


def validate_partita_iva(value: str) -> str | None:
    if not value:
        return MISSING_FIELD
    if not _PARTITA_IVA.fullmatch(value):
        return "Deve contenere 11 cifre"
    return None


def validate_codice_fiscale(value: str) -> str | None:
    """Accept a 16-character personal code or an 11-digit company code."""
    if not value:
        return MISSING_FIELD
    if not _CF_PERSONAL.fullmatch(value) and not _CF_NUMERIC.fullmatch(value):
        return "Formato non valido (16 caratteri o 11 cifre)"
    return None


def validate_pec(value: str) -> str | None:
    """Shape check only (local@domain.tld), not full RFC 5322."""
    if not value:
        return None
    if not _PEC.fullmatch(value):
        return "Email non valida"
    return None


def validate_codice_sdi(value: str) -> str | None:
    if not value:
        return None
    if not _CODICE_SDI.fullmatch(value):
        return "Deve contenere 7 caratteri alfanumerici"
    return None


def validate_ragione_sociale(value: str) -> str | None:
    if not value:
        return MISSING_FIELD
    if len(value) < 2:
        return "Minimo 2 caratteri"
    return None


def validate_sede_legale_via(value: str) -> str | None:
    if not value:
        return MISSING_FIELD
    if len(value) < 5:
        return "Minimo 5 caratteri"
    return None


def validate_sede_legale_cap(value: str) -> str | None:
    if not value:
        return MISSING_FIELD
    if not _CAP.fullmatch(value):
        return "Deve contenere 5 cifre"
    return None


def validate_sede_legale_citta(value: str) -> str | None:
    if not value:
        return MISSING_FIELD
    if len(value) < 2:
        return "Minimo 2 caratteri"
    return None


def validate_sede_legale_provincia(value: str) -> str | None:
    if not value:
        return MISSING_FIELD
    if not _PROVINCIA.fullmatch(value):
        return "Deve contenere 2 lettere"
    return None


FIELD_VALIDATORS: dict[str, Validator] = {
    "partita_iva": validate_partita_iva,
    "codice_fiscale": validate_codice_fiscale,
    "pec": validate_pec,
    "codice_sdi": validate_codice_sdi,
    "ragione_sociale": validate_ragione_sociale,
    "sede_legale_via": validate_sede_legale_via,
    "sede_legale_cap": validate_sede_legale_cap,
    "sede_legale_citta": validate_sede_legale_citta,
    "sede_legale_provincia": validate_sede_legale_provincia,
}

_OPTIONAL_FIELDS: tuple[str, ...] = ("pec", "codice_sdi")

_COMPANY_DATA_FIELDS: tuple[str, ...] = ("partita_iva", "codice_fiscale", "codice_sdi", "pec")


# ── Map-level validation ─────────────────────────────────────────────


def validate_field(key: str, value: object) -> str | None:
    """Validate one field by key. Unknown keys are always valid."""
    validator = FIELD_VALIDATORS.get(key)
    if validator is None:
        return None
    return validator("" if value is None else str(value))


def validate_invoice_values(
    values: Mapping[str, str | None] | None,
    customer_type: CustomerType | str | None,
) -> dict[str, str]:
    """Validate a customer's invoice form for the given customer type.

    Returns a field → message map; empty means all valid.
    """
    values = values or {}
    errors: dict[str, str] = {}

    for key in required_fields(parse_customer_type(customer_type)):
        error = validate_field(key, values.get(key))
        if error:
            errors[key] = error

    for key in _OPTIONAL_FIELDS:
        error = validate_field(key, values.get(key))
        if error:
            errors[key] = error

    return errors


def validate_company_data(data: Mapping[str, str | None] | None) -> dict[str, str]:
    """Validate the shop's own identity; every field is optional here."""
    data = data or {}
    errors: dict[str, str] = {}
    for key in _COMPANY_DATA_FIELDS:
        value = data.get(key)
        if not value:
            continue
        error = validate_field(key, value)
        if error:
            errors[key] = error
    return errors
