"""Provenance resolver: merges invoice fields from several stores.

Sources, strongest first:
- cart_local: `_invoice.*` cart properties / order note attributes of the
  current checkout.
- order_snapshot: the invoice_data document frozen on the order.
- customer_profile: the customer's flat "invoice" metafields (may be stale).

A field takes its value from the strongest source that *defines* it. Presence
is what counts, not truthiness: an explicit empty string in the cart hides a
non-empty profile value. The nested sede_legale object is taken as one unit
from a single structured document; only when no document carries it are the
four flat profile keys resolved one by one.

Pure Python, no I/O. Absent sources are treated as empty.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from invoice_tail.models.enums import ProvenanceSource, parse_customer_type
from invoice_tail.schemas.invoice import (
    INVOICE_FIELD_KEYS,
    SCALAR_FIELD_KEYS,
    SEDE_LEGALE_PARTS,
    ResolvedInvoice,
)

logger = logging.getLogger(__name__)

CART_ATTRIBUTE_PREFIX = "_invoice."
REQUESTED_ATTRIBUTE = "_invoice.requested"
_UPDATED_AT_ATTRIBUTE = "_invoice.updated_at"
_SEDE_LEGALE_PREFIX = "sede_legale."

PROFILE_REQUEST_FLAG_KEY = "request_invoice"
PROFILE_DOCUMENT_KEY = "invoice_data"


@dataclass(frozen=True)
class _SourceView:
    """One source normalized to flat fields plus an optional sede_legale unit."""

    source: ProvenanceSource
    fields: dict[str, str] = field(default_factory=dict)
    sede_legale: dict[str, str] | None = None
    customer_type: str | None = None


# ── Value coercion ───────────────────────────────────────────────────


def _coerce(value: Any) -> str | None:
    """Coerce a raw JSON/metafield value to str; None for absent or unusable shapes."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float | Decimal):
        return str(value)
    logger.debug("Dropping invoice value of unsupported type %s", type(value).__name__)
    return None


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    """Accept a mapping, a pydantic model or a JSON object string; anything else is empty."""
    if raw is None:
        return {}
    if isinstance(raw, BaseModel):
        return raw.model_dump(mode="json", exclude_none=True)
    if isinstance(raw, str | bytes):
        if not raw:
            return {}
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring invoice document that is not valid JSON")
            return {}
    if isinstance(raw, Mapping):
        return raw
    logger.warning("Ignoring invoice document of type %s", type(raw).__name__)
    return {}


# ── Cart properties ──────────────────────────────────────────────────


def cart_properties_from_attributes(attributes: Any) -> dict[str, str]:
    """Normalize cart properties or webhook note_attributes to a flat str map.

    Accepts a mapping (`{"_invoice.pec": "..."}`) or a list of
    `{"name": ..., "value": ...}` entries as delivered by orders/create.
    """
    if attributes is None:
        return {}
    if isinstance(attributes, Mapping):
        pairs: Iterable[tuple[Any, Any]] = attributes.items()
    elif isinstance(attributes, list | tuple):
        pairs = (
            (attr.get("name"), attr.get("value"))
            for attr in attributes
            if isinstance(attr, Mapping)
        )
    else:
        logger.warning("Ignoring cart attributes of type %s", type(attributes).__name__)
        return {}

    props: dict[str, str] = {}
    for name, value in pairs:
        if not isinstance(name, str):
            continue
        coerced = _coerce(value)
        if coerced is not None:
            props[name] = coerced
    return props


def cart_invoice_fields(cart_properties: Any) -> dict[str, Any]:
    """Build the cart-local invoice document from `_invoice.*` properties.

    `_invoice.sede_legale.via` etc. become a nested sede_legale object.
    The request flag and update timestamps are not invoice fields.
    """
    props = cart_properties_from_attributes(cart_properties)
    document: dict[str, Any] = {}

    for name, value in props.items():
        if not name.startswith(CART_ATTRIBUTE_PREFIX):
            continue
        if name == REQUESTED_ATTRIBUTE or name.startswith(_UPDATED_AT_ATTRIBUTE):
            continue
        key = name.removeprefix(CART_ATTRIBUTE_PREFIX)
        if key.startswith(_SEDE_LEGALE_PREFIX):
            document.setdefault("sede_legale", {})[key.removeprefix(_SEDE_LEGALE_PREFIX)] = value
        else:
            document[key] = value

    return document


def invoice_requested(cart_properties: Any) -> bool:
    """Request flag for the current cart.

    The cart decides only when `_invoice.requested` is present; an absent key
    means a fresh cart and yields False whatever the customer profile says.
    """
    props = cart_properties_from_attributes(cart_properties)
    if REQUESTED_ATTRIBUTE not in props:
        return False
    return props[REQUESTED_ATTRIBUTE] == "true"


def stored_request_flag(customer_profile: Mapping[str, Any] | None) -> bool:
    """The customer's long-lived request_invoice metafield."""
    if not customer_profile:
        return False
    return _coerce(customer_profile.get(PROFILE_REQUEST_FLAG_KEY)) == "true"


# ── Source normalization ─────────────────────────────────────────────


def _document_view(raw: Any, source: ProvenanceSource) -> _SourceView:
    """Normalize a structured document (cart-local or order snapshot)."""
    document = _as_mapping(raw)
    if any(isinstance(k, str) and k.startswith(CART_ATTRIBUTE_PREFIX) for k in document):
        document = cart_invoice_fields(document)

    fields: dict[str, str] = {}
    for key in SCALAR_FIELD_KEYS:
        if key in document:
            value = _coerce(document[key])
            if value is not None:
                fields[key] = value

    sede_legale: dict[str, str] | None = None
    nested = document.get("sede_legale")
    if isinstance(nested, Mapping):
        sede_legale = {}
        for part in SEDE_LEGALE_PARTS.values():
            value = _coerce(nested.get(part))
            if value is not None:
                sede_legale[part] = value
    else:
        if nested is not None:
            logger.debug("Ignoring non-object sede_legale from %s", source.value)
        # Flat keys in a single document still form one unit.
        flat: dict[str, str] = {}
        for key, part in SEDE_LEGALE_PARTS.items():
            value = _coerce(document.get(key))
            if value is not None:
                flat[part] = value
        if flat:
            sede_legale = flat

    customer_type = _coerce(document.get("customer_type")) if "customer_type" in document else None

    return _SourceView(source=source, fields=fields, sede_legale=sede_legale, customer_type=customer_type)


def _profile_view(raw: Any) -> _SourceView:
    """Normalize the customer's flat "invoice" metafields."""
    profile = _as_mapping(raw)

    fields: dict[str, str] = {}
    for key in INVOICE_FIELD_KEYS:
        if key in profile:
            value = _coerce(profile[key])
            if value is not None:
                fields[key] = value

    # invoice_data JSON first, then the flat metafield
    stored_document = _as_mapping(profile.get(PROFILE_DOCUMENT_KEY))
    customer_type = _coerce(stored_document.get("customer_type")) or _coerce(profile.get("customer_type"))

    return _SourceView(
        source=ProvenanceSource.CUSTOMER_PROFILE,
        fields=fields,
        sede_legale=None,
        customer_type=customer_type,
    )


# ── Public API ───────────────────────────────────────────────────────


def resolve(
    cart_local: Any = None,
    order_snapshot: Any = None,
    customer_profile: Any = None,
) -> ResolvedInvoice:
    """Resolve one canonical invoice field map from up to three sources.

    Args:
        cart_local: cart-local document, or raw `_invoice.*` cart properties.
        order_snapshot: the order's invoice_data document (dict, JSON string
            or InvoiceDataSnapshot).
        customer_profile: flat customer "invoice" metafields.

    Returns:
        ResolvedInvoice with flat values, per-field provenance and customer type.
    """
    views = sorted(
        [
            _document_view(cart_local, ProvenanceSource.CART_LOCAL),
            _document_view(order_snapshot, ProvenanceSource.ORDER_SNAPSHOT),
            _profile_view(customer_profile),
        ],
        key=lambda view: view.source.priority,
    )

    picked: dict[str, tuple[str, ProvenanceSource]] = {}

    for key in SCALAR_FIELD_KEYS:
        for view in views:
            if key in view.fields:
                picked[key] = (view.fields[key], view.source)
                break

    unit_view = next((v for v in views if v.sede_legale is not None), None)
    if unit_view is not None and unit_view.sede_legale is not None:
        for key, part in SEDE_LEGALE_PARTS.items():
            if part in unit_view.sede_legale:
                picked[key] = (unit_view.sede_legale[part], unit_view.source)
    else:
        for key in SEDE_LEGALE_PARTS:
            for view in views:
                if key in view.fields:
                    picked[key] = (view.fields[key], view.source)
                    break

    type_view = next((v for v in views if v.customer_type is not None), None)

    values = {key: picked[key][0] for key in INVOICE_FIELD_KEYS if key in picked}
    sources = {key: picked[key][1] for key in INVOICE_FIELD_KEYS if key in picked}

    return ResolvedInvoice(
        customer_type=parse_customer_type(type_view.customer_type if type_view else None),
        customer_type_source=type_view.source if type_view else None,
        values=values,
        sources=sources,
    )
