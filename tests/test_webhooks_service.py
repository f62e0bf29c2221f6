"""Tests for webhook subscription management.

Covers:
- Callback URL built from the app URL and the topic's handler path
- Unsupported topics and a missing app URL rejected before any API call
- Create / update pass the callback URL to the Admin API client
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from invoice_tail.integrations.shopify.client import ShopifyAdminClient
from invoice_tail.integrations.shopify.schemas import WebhookSubscription
from invoice_tail.services.webhooks import (
    AppUrlNotConfigured,
    UnsupportedWebhookTopic,
    callback_url,
    register_webhook,
    update_webhook,
)

APP_URL = "https://app.example.com/"
SUBSCRIPTION = WebhookSubscription(
    id="gid://shopify/WebhookSubscription/5",
    topic="ORDERS_CREATE",
    callback_url="https://app.example.com/webhooks/orders/create",
)


def _make_client() -> AsyncMock:
    client = AsyncMock(spec=ShopifyAdminClient)
    client.create_webhook_subscription.return_value = SUBSCRIPTION
    client.update_webhook_subscription.return_value = SUBSCRIPTION
    return client


class TestCallbackUrl:
    def test_orders_create(self):
        assert callback_url("ORDERS_CREATE", APP_URL) == "https://app.example.com/webhooks/orders/create"

    def test_unsupported_topic(self):
        with pytest.raises(UnsupportedWebhookTopic):
            callback_url("PRODUCTS_UPDATE", APP_URL)

    def test_missing_app_url(self):
        with pytest.raises(AppUrlNotConfigured):
            callback_url("ORDERS_CREATE", "")


class TestRegisterWebhook:
    @pytest.mark.asyncio()
    async def test_create(self):
        client = _make_client()

        subscription = await register_webhook(client, "ORDERS_CREATE", APP_URL)

        assert subscription == SUBSCRIPTION
        client.create_webhook_subscription.assert_awaited_once_with(
            "ORDERS_CREATE", "https://app.example.com/webhooks/orders/create"
        )

    @pytest.mark.asyncio()
    async def test_unsupported_topic_skips_api(self):
        client = _make_client()

        with pytest.raises(UnsupportedWebhookTopic):
            await register_webhook(client, "APP_UNINSTALLED", APP_URL)

        client.create_webhook_subscription.assert_not_awaited()


class TestUpdateWebhook:
    @pytest.mark.asyncio()
    async def test_update(self):
        client = _make_client()

        await update_webhook(client, "gid://shopify/WebhookSubscription/5", "ORDERS_CREATE", APP_URL)

        client.update_webhook_subscription.assert_awaited_once_with(
            "gid://shopify/WebhookSubscription/5", "https://app.example.com/webhooks/orders/create"
        )

    @pytest.mark.asyncio()
    async def test_missing_app_url_skips_api(self):
        client = _make_client()

        with pytest.raises(AppUrlNotConfigured):
            await update_webhook(client, "gid://shopify/WebhookSubscription/5", "ORDERS_CREATE", "")

        client.update_webhook_subscription.assert_not_awaited()
