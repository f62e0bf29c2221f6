"""Admin order list: recent orders whose customer asked for an invoice."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from invoice_tail.integrations.shopify.client import ShopifyAdminClient
from invoice_tail.schemas.api import InvoiceOrderPage, InvoiceOrderSummary, PageInfo

logger = logging.getLogger(__name__)

ORDERS_PAGE_SIZE = 15


def _metafield_true(node: Mapping[str, Any], alias: str) -> bool:
    return ((node.get(alias) or {}).get("value")) == "true"


def _amount(money_set: Mapping[str, Any] | None) -> Decimal:
    amount = ((money_set or {}).get("shopMoney") or {}).get("amount")
    if amount is None:
        return Decimal("0")
    try:
        return Decimal(str(amount))
    except InvalidOperation:
        logger.warning("Unparsable order total: %s", amount)
        return Decimal("0")


def _customer_name(customer: Mapping[str, Any]) -> str | None:
    if customer.get("displayName"):
        return customer["displayName"]
    parts = [customer.get("firstName"), customer.get("lastName")]
    return " ".join(p for p in parts if p) or None


def summarize_order(node: Mapping[str, Any]) -> InvoiceOrderSummary:
    """Flatten one GetInvoiceOrders node into a list row."""
    customer = node.get("customer") or {}
    money = ((node.get("totalPriceSet") or {}).get("shopMoney")) or {}
    return InvoiceOrderSummary(
        id=node["id"],
        name=node.get("name") or "",
        created_at=node.get("createdAt"),
        total_price=_amount(node.get("totalPriceSet")),
        currency=money.get("currencyCode"),
        unpaid=bool(node.get("unpaid")),
        fulfillment_status=node.get("displayFulfillmentStatus"),
        line_item_count=len((node.get("lineItems") or {}).get("edges") or []),
        customer_name=_customer_name(customer),
        customer_email=customer.get("email"),
        ragione_sociale=(customer.get("ragioneSociale") or {}).get("value"),
        emitted=_metafield_true(node, "emitted"),
    )


async def list_invoice_orders(
    client: ShopifyAdminClient,
    after: str | None = None,
    first: int = ORDERS_PAGE_SIZE,
) -> InvoiceOrderPage:
    """One page of orders, newest first, keeping those with invoice/requested = true.

    Filtering happens after paging, so a page may hold fewer than `first`
    orders while `page_info.has_next_page` is still true.
    """
    connection = await client.list_orders(first=first, after=after)
    nodes = [edge.get("node") or {} for edge in connection.get("edges") or []]
    orders = [summarize_order(node) for node in nodes if node.get("id") and _metafield_true(node, "requested")]

    page_info = connection.get("pageInfo") or {}
    logger.debug("Order list page: %d of %d requested an invoice", len(orders), len(nodes))
    return InvoiceOrderPage(
        orders=orders,
        page_info=PageInfo(
            has_next_page=bool(page_info.get("hasNextPage")),
            end_cursor=page_info.get("endCursor"),
        ),
    )
