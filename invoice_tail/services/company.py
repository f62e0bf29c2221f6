"""Shop company data: the seller identity printed on proforma invoices."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from invoice_tail.integrations.shopify.client import ShopifyAdminClient
from invoice_tail.integrations.shopify.schemas import (
    COMPANY_NAMESPACE,
    MetafieldInput,
    ShopCompany,
    ShopifyAPIError,
)
from invoice_tail.schemas.api import COMPANY_DATA_KEYS, CompanySaveResult
from invoice_tail.validators import validate_company_data

logger = logging.getLogger(__name__)


async def load_company_data(client: ShopifyAdminClient) -> ShopCompany:
    return await client.get_shop_company()


async def save_company_data(client: ShopifyAdminClient, data: Mapping[str, Any]) -> CompanySaveResult:
    """Validate and store non-empty company fields on the shop."""
    values = {key: str(data[key]) for key in COMPANY_DATA_KEYS if data.get(key)}

    errors = validate_company_data(values)
    if errors:
        return CompanySaveResult(success=False, errors=errors)

    shop = await client.get_shop_company()
    if not shop.shop_id:
        raise ShopifyAPIError("Could not retrieve shop ID")

    saved = await client.set_metafields([
        MetafieldInput(owner_id=shop.shop_id, namespace=COMPANY_NAMESPACE, key=key, value=value)
        for key, value in values.items()
    ])
    logger.info("Saved %d company metafields", len(saved))
    return CompanySaveResult(success=True, saved=saved)
