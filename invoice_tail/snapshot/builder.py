"""Invoice-data snapshotter: freezes resolved fields onto an order.

Called once per order, when the order is created with an invoice requested.
The produced InvoiceDataSnapshot is frozen and shares no mutable state with
its inputs: later edits to the customer profile cannot reach it.

Resetting the customer's request flag is the caller's job and must follow
the snapshot immediately (see services/orders.py).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from invoice_tail.eligibility.provenance import _as_mapping, _coerce, resolve
from invoice_tail.models.enums import CustomerType, parse_customer_type
from invoice_tail.schemas.invoice import (
    SEDE_LEGALE_PARTS,
    InvoiceDataSnapshot,
    ResolvedInvoice,
    SedeLegale,
)

logger = logging.getLogger(__name__)


def snapshot(
    resolved_fields: Mapping[str, Any] | ResolvedInvoice | None,
    customer_type: CustomerType | str | None = None,
    keep_empty_contacts: bool = False,
) -> InvoiceDataSnapshot:
    """Build the immutable invoice_data document from resolved fields.

    Optional contacts (pec, codice_sdi) are kept only when non-empty. With
    `keep_empty_contacts` an explicit "" present in the resolved values is
    written as well; order snapshots use this.
    Company-only members, including the nested sede_legale, are written for
    company customers only.
    """
    if isinstance(resolved_fields, ResolvedInvoice):
        if customer_type is None:
            customer_type = resolved_fields.customer_type
        raw: Mapping[str, Any] = resolved_fields.values
    else:
        raw = resolved_fields or {}

    values: dict[str, str] = {}
    for key, value in raw.items():
        coerced = _coerce(value)
        if coerced is not None:
            values[key] = coerced
    ctype = parse_customer_type(customer_type)

    data: dict[str, Any] = {
        "customer_type": ctype,
        "codice_fiscale": values.get("codice_fiscale"),
    }
    for key in ("pec", "codice_sdi"):
        if values.get(key) or (keep_empty_contacts and key in values):
            data[key] = values[key]

    if ctype == CustomerType.COMPANY:
        data["ragione_sociale"] = values.get("ragione_sociale")
        data["partita_iva"] = values.get("partita_iva")
        data["sede_legale"] = SedeLegale(
            **{part: values.get(key) for key, part in SEDE_LEGALE_PARTS.items()}
        )

    return InvoiceDataSnapshot(**data)


def take_order_snapshot(cart_local: Any, customer_profile: Any = None) -> InvoiceDataSnapshot:
    """Snapshot at order creation: cart-local data first, customer profile as fallback.

    No order snapshot exists yet at this point, so it is not a source.
    """
    resolved = resolve(cart_local=cart_local, order_snapshot=None, customer_profile=customer_profile)
    return snapshot(resolved, keep_empty_contacts=True)


def load_snapshot(raw: Any) -> InvoiceDataSnapshot | None:
    """Parse an order's invoice_data metafield (JSON string or mapping).

    Returns None for empty or malformed documents instead of raising.
    """
    document = _as_mapping(raw)
    if not document:
        return None

    def text(key: str, source: Mapping[str, Any] = document) -> str | None:
        return _coerce(source.get(key))

    sede_legale: SedeLegale | None = None
    nested = document.get("sede_legale")
    if isinstance(nested, Mapping):
        sede_legale = SedeLegale(**{part: text(part, nested) for part in SEDE_LEGALE_PARTS.values()})
    elif nested is not None:
        logger.warning("Order invoice_data has a non-object sede_legale, ignoring it")

    return InvoiceDataSnapshot(
        customer_type=parse_customer_type(document.get("customer_type")),
        codice_fiscale=text("codice_fiscale"),
        pec=text("pec"),
        codice_sdi=text("codice_sdi"),
        ragione_sociale=text("ragione_sociale"),
        partita_iva=text("partita_iva"),
        sede_legale=sede_legale,
    )
