"""orders/create webhook handling: snapshots invoice data onto new orders.

Per order the steps are strictly sequential:
1. resolve cart-local data (customer profile as fallback)
2. take the immutable snapshot
3. reset the customer's request_invoice flag
4. write requested/emitted/invoice_data on the order

Step 3 must not run before step 2, otherwise a later cart's flag could be
consumed by this order. A failed reset aborts before the order is written.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from invoice_tail.eligibility import (
    assess_invoice,
    cart_invoice_fields,
    cart_properties_from_attributes,
    invoice_requested,
)
from invoice_tail.eligibility.provenance import PROFILE_REQUEST_FLAG_KEY
from invoice_tail.integrations.shopify.client import ShopifyAdminClient
from invoice_tail.integrations.shopify.schemas import MetafieldInput
from invoice_tail.models.enums import MetafieldType
from invoice_tail.schemas.invoice import EligibilityResult, InvoiceDataSnapshot
from invoice_tail.snapshot import take_order_snapshot

logger = logging.getLogger(__name__)


class InvalidOrderPayload(ValueError):
    """The webhook payload lacks the order or customer id."""


class _WebhookCustomer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    admin_graphql_api_id: str | None = None


class OrderCreatedPayload(BaseModel):
    """The subset of the orders/create payload this app reads."""

    model_config = ConfigDict(extra="ignore")

    admin_graphql_api_id: str | None = None
    customer: _WebhookCustomer | None = None
    note_attributes: list[Any] = Field(default_factory=list)


class OrderInvoiceOutcome(BaseModel):
    order_id: str
    customer_id: str
    requested: bool
    snapshot: InvoiceDataSnapshot | None = None
    eligibility: EligibilityResult | None = None
    saved: list[dict[str, Any]] = Field(default_factory=list)


async def handle_order_created(
    client: ShopifyAdminClient,
    payload: Mapping[str, Any],
) -> OrderInvoiceOutcome:
    """Process one orders/create delivery.

    Raises:
        InvalidOrderPayload: order or customer id missing / payload malformed.
        ShopifyAPIError: a read or write against the Admin API failed.
    """
    try:
        order = OrderCreatedPayload.model_validate(payload)
    except ValidationError as exc:
        raise InvalidOrderPayload("Malformed orders/create payload") from exc

    order_gid = order.admin_graphql_api_id
    customer_gid = order.customer.admin_graphql_api_id if order.customer else None
    if not order_gid or not customer_gid:
        raise InvalidOrderPayload("Missing customer or order GID")

    cart_properties = cart_properties_from_attributes(order.note_attributes)

    if not invoice_requested(cart_properties):
        logger.info("Order %s: no invoice requested", order_gid)
        return OrderInvoiceOutcome(order_id=order_gid, customer_id=customer_gid, requested=False)

    # 1–2. Resolve and freeze
    profile = await client.get_customer_metafields(customer_gid)
    cart_local = cart_invoice_fields(cart_properties)
    invoice_snapshot = take_order_snapshot(cart_local, profile)
    _, eligibility = assess_invoice(cart_local=cart_local, customer_profile=profile)

    if not eligibility.is_invoice_possible:
        logger.warning(
            "Order %s: invoice requested with missing fields %s",
            order_gid,
            eligibility.missing_fields,
        )

    # 3. Reset the long-lived flag so it does not leak into the next order
    await client.set_metafields([
        MetafieldInput(
            owner_id=customer_gid,
            key=PROFILE_REQUEST_FLAG_KEY,
            type=MetafieldType.BOOLEAN,
            value="false",
        ),
    ])

    # 4. Attach the snapshot to the order
    saved = await client.set_metafields([
        MetafieldInput(owner_id=order_gid, key="requested", type=MetafieldType.BOOLEAN, value="true"),
        MetafieldInput(owner_id=order_gid, key="emitted", type=MetafieldType.BOOLEAN, value="false"),
        MetafieldInput(
            owner_id=order_gid,
            key="invoice_data",
            type=MetafieldType.JSON,
            value=invoice_snapshot.to_metafield_value(),
        ),
    ])

    logger.info("Order %s: invoice snapshot stored (%s)", order_gid, invoice_snapshot.customer_type.value)

    return OrderInvoiceOutcome(
        order_id=order_gid,
        customer_id=customer_gid,
        requested=True,
        snapshot=invoice_snapshot,
        eligibility=eligibility,
        saved=saved,
    )
