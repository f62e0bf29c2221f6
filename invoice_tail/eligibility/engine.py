"""Eligibility evaluator: can an invoice be emitted with the resolved fields?

Pure Python. Presence-only: a stored value that no longer passes the format
validators still counts as present. Format is enforced at write time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from invoice_tail.eligibility.policy import required_fields
from invoice_tail.eligibility.provenance import resolve
from invoice_tail.models.enums import CustomerType, parse_customer_type
from invoice_tail.schemas.invoice import EligibilityResult, ResolvedInvoice


def evaluate(
    resolved_fields: Mapping[str, Any] | ResolvedInvoice | None,
    customer_type: CustomerType | str | None = None,
) -> EligibilityResult:
    """Compute missing required fields and the isInvoicePossible flag.

    Args:
        resolved_fields: flat field map, or a ResolvedInvoice whose customer
            type is used when `customer_type` is not given.
        customer_type: individual or company (company when unknown).

    Returns:
        EligibilityResult; missing_fields follows the policy's declared order.
    """
    if isinstance(resolved_fields, ResolvedInvoice):
        if customer_type is None:
            customer_type = resolved_fields.customer_type
        raw: Mapping[str, Any] = resolved_fields.values
    else:
        raw = resolved_fields or {}

    values = {k: v for k, v in raw.items() if isinstance(v, str)}
    missing = [key for key in required_fields(parse_customer_type(customer_type)) if not values.get(key)]

    return EligibilityResult(
        is_invoice_possible=not missing,
        missing_fields=missing,
        values=values,
    )


def assess_invoice(
    cart_local: Any = None,
    order_snapshot: Any = None,
    customer_profile: Any = None,
) -> tuple[ResolvedInvoice, EligibilityResult]:
    """Resolve all sources, then evaluate with the resolved customer type."""
    resolved = resolve(cart_local, order_snapshot, customer_profile)
    return resolved, evaluate(resolved)
