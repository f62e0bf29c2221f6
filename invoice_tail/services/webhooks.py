"""Webhook subscription management for the topics this app handles."""

from __future__ import annotations

import logging

from invoice_tail.config import settings
from invoice_tail.integrations.shopify.client import ShopifyAdminClient
from invoice_tail.integrations.shopify.schemas import WEBHOOK_CALLBACK_PATHS, WebhookSubscription

logger = logging.getLogger(__name__)


class UnsupportedWebhookTopic(ValueError):
    """Topic has no handler in this app."""


class AppUrlNotConfigured(RuntimeError):
    """SHOPIFY_APP_URL is empty, so no callback URL can be built."""


def callback_url(topic: str, app_url: str | None = None) -> str:
    """Public URL Shopify should call for `topic`."""
    path = WEBHOOK_CALLBACK_PATHS.get(topic)
    if path is None:
        raise UnsupportedWebhookTopic(f"Unsupported topic: {topic}")
    base = (settings.shopify.shopify_app_url if app_url is None else app_url).rstrip("/")
    if not base:
        raise AppUrlNotConfigured("SHOPIFY_APP_URL not configured")
    return f"{base}{path}"


async def register_webhook(
    client: ShopifyAdminClient,
    topic: str,
    app_url: str | None = None,
) -> WebhookSubscription:
    url = callback_url(topic, app_url)
    subscription = await client.create_webhook_subscription(topic, url)
    logger.info("Created webhook %s -> %s (%s)", topic, url, subscription.id)
    return subscription


async def update_webhook(
    client: ShopifyAdminClient,
    webhook_id: str,
    topic: str,
    app_url: str | None = None,
) -> WebhookSubscription:
    """Point an existing subscription at the current callback URL."""
    url = callback_url(topic, app_url)
    subscription = await client.update_webhook_subscription(webhook_id, url)
    logger.info("Updated webhook %s %s -> %s", webhook_id, topic, url)
    return subscription
