"""Async httpx client for the Shopify Admin GraphQL API (metafields, orders, shop)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from invoice_tail.config import settings
from invoice_tail.integrations.shopify.schemas import (
    COMPANY_NAMESPACE,
    INVOICE_NAMESPACE,
    MetafieldInput,
    MetafieldUserError,
    ShopCompany,
    ShopifyAPIError,
    WebhookSubscription,
    WebhookUserError,
    to_gid,
)

logger = logging.getLogger(__name__)

# ── GraphQL documents ────────────────────────────────────────────────

_CUSTOMER_METAFIELDS_QUERY = """
query GetCustomerMetafields($id: ID!, $namespace: String!) {
  customer(id: $id) {
    metafields(namespace: $namespace, first: 25) {
      edges { node { key value } }
    }
  }
}
"""

_SET_METAFIELDS_MUTATION = """
mutation SetMetafields($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields { id key value }
    userErrors { field message }
  }
}
"""

_SHOP_COMPANY_QUERY = """
query GetShopCompanyData($namespace: String!) {
  shop {
    id
    name
    metafields(namespace: $namespace, first: 25) {
      edges { node { key value } }
    }
  }
}
"""

_ORDER_FOR_PROFORMA_QUERY = """
query GetOrderForProforma($id: ID!, $namespace: String!) {
  order(id: $id) {
    id
    name
    createdAt
    poNumber
    paymentGatewayNames
    invoiceData: metafield(namespace: $namespace, key: "invoice_data") { value }
    customer {
      id
      displayName
      firstName
      lastName
      email
      phone
      metafields(namespace: $namespace, first: 25) {
        edges { node { key value } }
      }
    }
    billingAddress { address1 address2 city province zip country phone }
    shippingAddress { address1 address2 city province zip country phone }
    lineItems(first: 100) {
      edges {
        node {
          title
          variantTitle
          sku
          quantity
          originalUnitPriceSet { shopMoney { amount } }
          discountedUnitPriceSet { shopMoney { amount } }
        }
      }
    }
    subtotalPriceSet { shopMoney { amount currencyCode } }
    totalShippingPriceSet { shopMoney { amount } }
    totalTaxSet { shopMoney { amount } }
    totalPriceSet { shopMoney { amount currencyCode } }
  }
}
"""

_SHOP_FOR_PROFORMA_QUERY = """
query GetShopForProforma($namespace: String!) {
  shop {
    id
    name
    email
    billingAddress { address1 address2 city province zip country }
    metafields(namespace: $namespace, first: 25) {
      edges { node { key value } }
    }
  }
}
"""

_INVOICE_ORDERS_QUERY = """
query GetInvoiceOrders($first: Int!, $after: String, $namespace: String!) {
  orders(first: $first, after: $after, sortKey: CREATED_AT, reverse: true) {
    edges {
      cursor
      node {
        id
        name
        createdAt
        totalPriceSet { shopMoney { amount currencyCode } }
        unpaid
        displayFulfillmentStatus
        lineItems(first: 100) { edges { node { id } } }
        customer {
          displayName
          firstName
          lastName
          email
          ragioneSociale: metafield(namespace: $namespace, key: "ragione_sociale") { value }
        }
        requested: metafield(namespace: $namespace, key: "requested") { value }
        emitted: metafield(namespace: $namespace, key: "emitted") { value }
      }
    }
    pageInfo { hasNextPage endCursor }
  }
}
"""

_WEBHOOK_CREATE_MUTATION = """
mutation CreateWebhook($topic: WebhookSubscriptionTopic!, $webhookSubscription: WebhookSubscriptionInput!) {
  webhookSubscriptionCreate(topic: $topic, webhookSubscription: $webhookSubscription) {
    userErrors { field message }
    webhookSubscription {
      id
      topic
      endpoint { __typename ... on WebhookHttpEndpoint { callbackUrl } }
    }
  }
}
"""

_WEBHOOK_UPDATE_MUTATION = """
mutation UpdateWebhook($id: ID!, $webhookSubscription: WebhookSubscriptionInput!) {
  webhookSubscriptionUpdate(id: $id, webhookSubscription: $webhookSubscription) {
    userErrors { field message }
    webhookSubscription {
      id
      topic
      endpoint { __typename ... on WebhookHttpEndpoint { callbackUrl } }
    }
  }
}
"""


def edges_to_map(connection: dict[str, Any] | None) -> dict[str, str]:
    """Flatten a metafield connection ({edges: [{node: {key, value}}]}) into a dict."""
    result: dict[str, str] = {}
    for edge in (connection or {}).get("edges") or []:
        node = edge.get("node") or {}
        key = node.get("key")
        if isinstance(key, str) and node.get("value") is not None:
            result[key] = str(node["value"])
    return result


class ShopifyAdminClient:
    """Thin async wrapper around the Admin GraphQL endpoint.

    Endpoint: POST https://{shop}/admin/api/{version}/graphql.json
    Auth: X-Shopify-Access-Token header
    """

    def __init__(self) -> None:
        self._url = settings.shopify.graphql_url
        self._access_token = settings.shopify.shopify_admin_access_token
        self._timeout = httpx.Timeout(settings.shopify.shopify_timeout, connect=5.0)

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL document and return its `data` object."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._url,
                    json={"query": query, "variables": variables or {}},
                    headers={
                        "X-Shopify-Access-Token": self._access_token,
                        "Content-Type": "application/json",
                    },
                )
                response.raise_for_status()
                payload: dict[str, Any] = response.json()

        except httpx.TimeoutException as exc:
            logger.warning("Shopify Admin API timeout")
            raise ShopifyAPIError("Shopify Admin API timeout") from exc

        except httpx.HTTPStatusError as exc:
            logger.warning("Shopify Admin API HTTP error %s", exc.response.status_code)
            raise ShopifyAPIError(f"Shopify Admin API HTTP {exc.response.status_code}") from exc

        except httpx.HTTPError as exc:
            logger.warning("Shopify Admin API transport error: %s", exc)
            raise ShopifyAPIError("Shopify Admin API unreachable") from exc

        errors = payload.get("errors")
        if errors:
            logger.warning("Shopify GraphQL errors: %s", errors)
            raise ShopifyAPIError("Shopify GraphQL errors", errors=errors)

        return payload.get("data") or {}

    # ── Metafields ───────────────────────────────────────────────────

    async def get_customer_metafields(
        self,
        customer_id: str | int,
        namespace: str = INVOICE_NAMESPACE,
    ) -> dict[str, str]:
        """Read a customer's metafields in one namespace as a flat dict."""
        data = await self.execute(
            _CUSTOMER_METAFIELDS_QUERY,
            {"id": to_gid("Customer", customer_id), "namespace": namespace},
        )
        customer = data.get("customer") or {}
        return edges_to_map(customer.get("metafields"))

    async def set_metafields(self, inputs: list[MetafieldInput]) -> list[dict[str, Any]]:
        """Write metafields in one metafieldsSet call; raises MetafieldUserError on userErrors."""
        if not inputs:
            return []
        data = await self.execute(
            _SET_METAFIELDS_MUTATION,
            {"metafields": [i.to_variables() for i in inputs]},
        )
        result = data.get("metafieldsSet") or {}
        user_errors = result.get("userErrors") or []
        if user_errors:
            logger.error("metafieldsSet userErrors: %s", user_errors)
            raise MetafieldUserError("Metafield write rejected", errors=user_errors)
        return result.get("metafields") or []

    # ── Shop ─────────────────────────────────────────────────────────

    async def get_shop_company(self, namespace: str = COMPANY_NAMESPACE) -> ShopCompany:
        data = await self.execute(_SHOP_COMPANY_QUERY, {"namespace": namespace})
        shop = data.get("shop") or {}
        return ShopCompany(
            shop_id=shop.get("id"),
            shop_name=shop.get("name"),
            company_data=edges_to_map(shop.get("metafields")),
        )

    async def get_shop_for_proforma(self) -> dict[str, Any]:
        data = await self.execute(_SHOP_FOR_PROFORMA_QUERY, {"namespace": COMPANY_NAMESPACE})
        return data.get("shop") or {}

    # ── Orders ───────────────────────────────────────────────────────

    async def get_order_for_proforma(self, order_id: str | int) -> dict[str, Any] | None:
        """Order with line items, totals, invoice snapshot and customer invoice metafields."""
        data = await self.execute(
            _ORDER_FOR_PROFORMA_QUERY,
            {"id": to_gid("Order", order_id), "namespace": INVOICE_NAMESPACE},
        )
        return data.get("order")

    async def list_orders(self, first: int = 15, after: str | None = None) -> dict[str, Any]:
        """Newest orders first with their invoice/requested and invoice/emitted metafields."""
        data = await self.execute(
            _INVOICE_ORDERS_QUERY,
            {"first": first, "after": after, "namespace": INVOICE_NAMESPACE},
        )
        return data.get("orders") or {}

    # ── Webhooks ─────────────────────────────────────────────────────

    async def create_webhook_subscription(self, topic: str, callback_url: str) -> WebhookSubscription:
        data = await self.execute(
            _WEBHOOK_CREATE_MUTATION,
            {"topic": topic, "webhookSubscription": {"callbackUrl": callback_url, "format": "JSON"}},
        )
        return _webhook_subscription(data.get("webhookSubscriptionCreate"))

    async def update_webhook_subscription(self, webhook_id: str, callback_url: str) -> WebhookSubscription:
        data = await self.execute(
            _WEBHOOK_UPDATE_MUTATION,
            {"id": webhook_id, "webhookSubscription": {"callbackUrl": callback_url}},
        )
        return _webhook_subscription(data.get("webhookSubscriptionUpdate"))


def _webhook_subscription(result: dict[str, Any] | None) -> WebhookSubscription:
    """Unwrap a webhookSubscriptionCreate/Update payload; raises WebhookUserError on userErrors."""
    result = result or {}
    user_errors = result.get("userErrors") or []
    if user_errors:
        logger.error("Webhook subscription userErrors: %s", user_errors)
        raise WebhookUserError("Webhook subscription rejected", errors=user_errors)
    node = result.get("webhookSubscription") or {}
    endpoint = node.get("endpoint") or {}
    return WebhookSubscription(
        id=node.get("id"),
        topic=node.get("topic"),
        callback_url=endpoint.get("callbackUrl"),
    )


# Module-level singleton
shopify_client = ShopifyAdminClient()
