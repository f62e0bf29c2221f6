"""Canonical invoice field validators."""

from invoice_tail.validators.fields import (
    FIELD_VALIDATORS,
    MISSING_FIELD,
    validate_codice_fiscale,
    validate_codice_sdi,
    validate_company_data,
    validate_field,
    validate_invoice_values,
    validate_partita_iva,
    validate_pec,
    validate_ragione_sociale,
    validate_sede_legale_cap,
    validate_sede_legale_citta,
    validate_sede_legale_provincia,
    validate_sede_legale_via,
)

__all__ = [
    "FIELD_VALIDATORS",
    "MISSING_FIELD",
    "validate_codice_fiscale",
    "validate_codice_sdi",
    "validate_company_data",
    "validate_field",
    "validate_invoice_values",
    "validate_partita_iva",
    "validate_pec",
    "validate_ragione_sociale",
    "validate_sede_legale_cap",
    "validate_sede_legale_citta",
    "validate_sede_legale_provincia",
    "validate_sede_legale_via",
]
