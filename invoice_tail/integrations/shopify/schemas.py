"""Pydantic schemas and errors for the Shopify Admin GraphQL API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from invoice_tail.models.enums import MetafieldType

INVOICE_NAMESPACE = "invoice"
COMPANY_NAMESPACE = "company"


class ShopifyAPIError(Exception):
    """Transport failure, non-2xx response or top-level GraphQL errors."""

    def __init__(self, message: str, errors: list[Any] | None = None) -> None:
        super().__init__(message)
        self.errors: list[Any] = errors or []


class MetafieldUserError(ShopifyAPIError):
    """metafieldsSet answered with userErrors."""


def to_gid(resource: str, resource_id: str | int) -> str:
    """Build a Shopify global id; gids pass through unchanged."""
    raw = str(resource_id).strip()
    if raw.startswith("gid://"):
        return raw
    return f"gid://shopify/{resource}/{raw}"


class MetafieldInput(BaseModel):
    """One entry of the MetafieldsSetInput list."""

    model_config = ConfigDict(populate_by_name=True)

    owner_id: str = Field(alias="ownerId")
    namespace: str = INVOICE_NAMESPACE
    key: str
    type: MetafieldType = MetafieldType.SINGLE_LINE_TEXT
    value: str

    def to_variables(self) -> dict[str, str]:
        return self.model_dump(mode="json", by_alias=True)


class ShopCompany(BaseModel):
    """Shop identity plus its "company" metafields."""

    shop_id: str | None = None
    shop_name: str | None = None
    company_data: dict[str, str] = Field(default_factory=dict)


# Webhook topics this app serves → route path of the handler
WEBHOOK_CALLBACK_PATHS: dict[str, str] = {
    "ORDERS_CREATE": "/webhooks/orders/create",
}


class WebhookUserError(ShopifyAPIError):
    """webhookSubscriptionCreate / webhookSubscriptionUpdate answered with userErrors."""


class WebhookSubscription(BaseModel):
    """A webhook subscription as returned by the Admin API."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    topic: str | None = None
    callback_url: str | None = Field(default=None, alias="callbackUrl")
