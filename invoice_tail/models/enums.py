"""Domain enums used across the resolver, snapshotter and API schemas.

All enums use str mixin for JSON serialization into metafield values.
"""

from __future__ import annotations

from enum import Enum


class CustomerType(str, Enum):
    """Who the invoice is addressed to: drives the required-field policy."""

    INDIVIDUAL = "individual"  # persona fisica
    COMPANY = "company"        # società / ditta individuale


class ProvenanceSource(str, Enum):
    """Where a resolved invoice field was read from."""

    CART_LOCAL = "cart_local"              # same checkout session
    ORDER_SNAPSHOT = "order_snapshot"      # frozen at order creation
    CUSTOMER_PROFILE = "customer_profile"  # long-lived "invoice" metafields

    @property
    def priority(self) -> int:
        """Lower is stronger: cart_local > order_snapshot > customer_profile."""
        return _PRIORITY[self]


_PRIORITY: dict[ProvenanceSource, int] = {
    ProvenanceSource.CART_LOCAL: 0,
    ProvenanceSource.ORDER_SNAPSHOT: 1,
    ProvenanceSource.CUSTOMER_PROFILE: 2,
}


class MetafieldType(str, Enum):
    """Shopify metafield value types written by this app."""

    SINGLE_LINE_TEXT = "single_line_text_field"
    BOOLEAN = "boolean"
    JSON = "json"


def parse_customer_type(value: object) -> CustomerType:
    """Parse a raw customer type, defaulting to company for empty or unknown input."""
    if isinstance(value, CustomerType):
        return value
    if isinstance(value, str) and value == CustomerType.INDIVIDUAL.value:
        return CustomerType.INDIVIDUAL
    return CustomerType.COMPANY
