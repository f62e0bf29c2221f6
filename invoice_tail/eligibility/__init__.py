"""Invoice eligibility: required-field policy, provenance resolution, evaluation."""

from invoice_tail.eligibility.engine import assess_invoice, evaluate
from invoice_tail.eligibility.policy import REQUIRED_FIELDS, required_fields
from invoice_tail.eligibility.provenance import (
    cart_invoice_fields,
    cart_properties_from_attributes,
    invoice_requested,
    resolve,
    stored_request_flag,
)
from invoice_tail.schemas.invoice import EligibilityResult, ResolvedInvoice

__all__ = [
    "REQUIRED_FIELDS",
    "EligibilityResult",
    "ResolvedInvoice",
    "assess_invoice",
    "cart_invoice_fields",
    "cart_properties_from_attributes",
    "evaluate",
    "invoice_requested",
    "required_fields",
    "resolve",
    "stored_request_flag",
]
