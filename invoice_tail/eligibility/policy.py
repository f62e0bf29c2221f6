"""Required-field policy per customer type."""

from __future__ import annotations

from invoice_tail.models.enums import CustomerType, parse_customer_type

# Declared order is the order of missingFields in user-facing messages.
REQUIRED_FIELDS: dict[CustomerType, tuple[str, ...]] = {
    CustomerType.INDIVIDUAL: ("codice_fiscale",),
    CustomerType.COMPANY: (
        "ragione_sociale",
        "partita_iva",
        "codice_fiscale",
        "sede_legale_via",
        "sede_legale_cap",
        "sede_legale_citta",
        "sede_legale_provincia",
    ),
}


def required_fields(customer_type: CustomerType | str | None) -> tuple[str, ...]:
    """Mandatory field keys for a customer type (company when unknown)."""
    return REQUIRED_FIELDS[parse_customer_type(customer_type)]
