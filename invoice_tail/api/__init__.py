"""HTTP surface."""

from invoice_tail.api.routes import get_shopify_client, router

__all__ = ["get_shopify_client", "router"]
