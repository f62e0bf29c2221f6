"""Pydantic schemas for invoice fields, snapshots and eligibility.

Pure data classes: no HTTP dependencies, no Shopify dependencies.
Used as inputs/outputs for the deterministic resolution pipeline.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from invoice_tail.models.enums import CustomerType, ProvenanceSource

# ---------------------------------------------------------------------------
# Field keys
# ---------------------------------------------------------------------------

# Flat key/value map of invoice fields (metafield key → value)
InvoiceFields = dict[str, str]

COMMON_FIELDS: tuple[str, ...] = ("codice_fiscale", "pec", "codice_sdi")

COMPANY_FIELDS: tuple[str, ...] = (
    "ragione_sociale",
    "partita_iva",
    "sede_legale_via",
    "sede_legale_cap",
    "sede_legale_citta",
    "sede_legale_provincia",
)

INVOICE_FIELD_KEYS: tuple[str, ...] = COMMON_FIELDS + COMPANY_FIELDS

# Flat metafield key → member of the nested sede_legale object
SEDE_LEGALE_PARTS: dict[str, str] = {
    "sede_legale_via": "via",
    "sede_legale_cap": "cap",
    "sede_legale_citta": "citta",
    "sede_legale_provincia": "provincia",
}

SCALAR_FIELD_KEYS: tuple[str, ...] = tuple(k for k in INVOICE_FIELD_KEYS if k not in SEDE_LEGALE_PARTS)


# ---------------------------------------------------------------------------
# Snapshot (order invoice_data metafield)
# ---------------------------------------------------------------------------


class SedeLegale(BaseModel):
    """Registered office, stored as one unit inside invoice_data."""

    model_config = ConfigDict(frozen=True)

    via: str | None = None
    cap: str | None = None
    citta: str | None = None
    provincia: str | None = None


class InvoiceDataSnapshot(BaseModel):
    """Invoice data frozen at order creation: the legal record of the purchase.

    Never mutated after creation; later customer profile edits do not reach it.
    """

    model_config = ConfigDict(frozen=True)

    customer_type: CustomerType = CustomerType.COMPANY
    codice_fiscale: str | None = None
    pec: str | None = None
    codice_sdi: str | None = None
    ragione_sociale: str | None = None
    partita_iva: str | None = None
    sede_legale: SedeLegale | None = None

    def to_document(self) -> dict[str, object]:
        """JSON-ready dict with absent members omitted."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_metafield_value(self) -> str:
        """Serialized form written to the invoice/invoice_data metafield."""
        return self.model_dump_json(exclude_none=True)


# ---------------------------------------------------------------------------
# Resolver / evaluator outputs
# ---------------------------------------------------------------------------


class ResolvedInvoice(BaseModel):
    """Canonical field map produced by the provenance resolver.

    Every key in `values` has exactly one entry in `sources`.
    """

    customer_type: CustomerType = CustomerType.COMPANY
    customer_type_source: ProvenanceSource | None = None
    values: InvoiceFields = Field(default_factory=dict)
    sources: dict[str, ProvenanceSource] = Field(default_factory=dict)


class EligibilityResult(BaseModel):
    """Derived, never stored: can an invoice be emitted with these values?"""

    model_config = ConfigDict(populate_by_name=True)

    is_invoice_possible: bool = Field(alias="isInvoicePossible")
    missing_fields: list[str] = Field(default_factory=list, alias="missingFields")
    values: InvoiceFields = Field(default_factory=dict)
