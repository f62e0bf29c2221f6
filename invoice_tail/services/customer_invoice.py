"""Customer invoice data service: read, save and toggle the invoice request.

Orchestrates the Shopify client and the pure eligibility/snapshot core.
All customer data lives in the customer's "invoice" metafield namespace.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from invoice_tail.eligibility import (
    assess_invoice,
    cart_invoice_fields,
    evaluate,
    invoice_requested,
    stored_request_flag,
)
from invoice_tail.eligibility.provenance import PROFILE_DOCUMENT_KEY, PROFILE_REQUEST_FLAG_KEY
from invoice_tail.integrations.shopify.client import ShopifyAdminClient
from invoice_tail.integrations.shopify.schemas import MetafieldInput, to_gid
from invoice_tail.models.enums import MetafieldType, parse_customer_type
from invoice_tail.schemas.api import CustomerInvoiceView, SaveInvoiceResult
from invoice_tail.schemas.invoice import INVOICE_FIELD_KEYS
from invoice_tail.snapshot import snapshot
from invoice_tail.validators import validate_invoice_values

logger = logging.getLogger(__name__)


def _clean_values(values: Mapping[str, Any]) -> dict[str, str]:
    """Known invoice keys only, as strings; unknown keys are dropped."""
    return {key: str(values[key]) for key in INVOICE_FIELD_KEYS if values.get(key) is not None}


async def load_customer_invoice(
    client: ShopifyAdminClient,
    customer_id: str | int,
    cart_properties: Mapping[str, Any] | None = None,
) -> CustomerInvoiceView:
    """Current invoice data for a customer, with cart properties taking priority."""
    profile = await client.get_customer_metafields(customer_id)
    resolved, result = assess_invoice(cart_local=cart_invoice_fields(cart_properties), customer_profile=profile)

    logger.info(
        "Invoice data for customer %s: type=%s possible=%s missing=%d",
        customer_id,
        resolved.customer_type.value,
        result.is_invoice_possible,
        len(result.missing_fields),
    )

    return CustomerInvoiceView(
        is_invoice_possible=result.is_invoice_possible,
        missing_fields=result.missing_fields,
        values=result.values,
        customer_type=resolved.customer_type,
        emit_invoice=stored_request_flag(profile),
        request_invoice=invoice_requested(cart_properties),
    )


async def save_customer_invoice(
    client: ShopifyAdminClient,
    customer_id: str | int,
    values: Mapping[str, Any],
) -> SaveInvoiceResult:
    """Validate and store a customer's invoice fields.

    Writes one text metafield per provided field, the customer_type, and the
    structured invoice_data document. Nothing is written when validation fails.
    """
    customer_type = parse_customer_type(values.get("customer_type"))
    clean = _clean_values(values)

    errors = validate_invoice_values(clean, customer_type)
    if errors:
        logger.info("Invoice data for customer %s rejected: %s", customer_id, sorted(errors))
        result = evaluate(clean, customer_type)
        return SaveInvoiceResult(
            success=False,
            errors=errors,
            values=clean,
            missing_fields=result.missing_fields,
            is_invoice_possible=result.is_invoice_possible,
        )

    owner_id = to_gid("Customer", customer_id)
    inputs = [MetafieldInput(owner_id=owner_id, key=key, value=value) for key, value in clean.items()]
    inputs.append(MetafieldInput(owner_id=owner_id, key="customer_type", value=customer_type.value))
    inputs.append(MetafieldInput(
        owner_id=owner_id,
        key=PROFILE_DOCUMENT_KEY,
        type=MetafieldType.JSON,
        value=snapshot(clean, customer_type).to_metafield_value(),
    ))

    saved = await client.set_metafields(inputs)
    result = evaluate(clean, customer_type)

    logger.info(
        "Saved %d invoice metafields for customer %s (possible=%s)",
        len(saved),
        customer_id,
        result.is_invoice_possible,
    )

    return SaveInvoiceResult(
        success=True,
        values={**clean, "customer_type": customer_type.value},
        missing_fields=result.missing_fields,
        is_invoice_possible=result.is_invoice_possible,
        saved=saved,
    )


async def set_invoice_request(
    client: ShopifyAdminClient,
    customer_id: str | int,
    value: bool,
) -> list[dict[str, Any]]:
    """Store the customer's long-lived request_invoice flag."""
    saved = await client.set_metafields([
        MetafieldInput(
            owner_id=to_gid("Customer", customer_id),
            key=PROFILE_REQUEST_FLAG_KEY,
            type=MetafieldType.BOOLEAN,
            value="true" if value else "false",
        ),
    ])
    logger.info("request_invoice for customer %s set to %s", customer_id, value)
    return saved
