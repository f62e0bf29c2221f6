"""Proforma builder: turns Admin API order/shop nodes into the template context.

The buyer's invoice block goes through the provenance resolver with the
order's invoice_data snapshot over the customer's current metafields, so a
historical order keeps printing what was true at purchase time.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from invoice_tail.eligibility import resolve
from invoice_tail.integrations.shopify.client import edges_to_map
from invoice_tail.schemas.api import COMPANY_DATA_KEYS, CompanyData
from invoice_tail.schemas.invoice import SEDE_LEGALE_PARTS, SedeLegale
from invoice_tail.schemas.proforma import (
    CustomerInvoiceBlock,
    ProformaAddress,
    ProformaContext,
    ProformaCustomer,
    ProformaLineItem,
    ProformaOrder,
    ProformaShop,
)

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def build_proforma_context(order: Mapping[str, Any], shop: Mapping[str, Any]) -> ProformaContext:
    """Build the proforma context from GetOrderForProforma and GetShopForProforma nodes."""
    customer = _build_customer(order.get("customer") or {}, order.get("invoiceData"))
    company = _build_company(shop)
    invoice = customer.invoice

    return ProformaContext(
        order=ProformaOrder(
            order_name=order.get("name") or "",
            created_at=_parse_datetime(order.get("createdAt")),
            po_number=order.get("poNumber"),
            customer=customer,
            billing_address=_build_address(order.get("billingAddress")),
            shipping_address=_build_address(order.get("shippingAddress")),
            line_items=[_build_line_item(edge.get("node") or {}) for edge in _edges(order.get("lineItems"))],
            subtotal_price=_money(order.get("subtotalPriceSet")),
            shipping_price=_money(order.get("totalShippingPriceSet")),
            tax_price=_money(order.get("totalTaxSet")),
            total_price=_money(order.get("totalPriceSet")),
            gateway=next(iter(order.get("paymentGatewayNames") or []), None),
            currency=((order.get("totalPriceSet") or {}).get("shopMoney") or {}).get("currencyCode"),
        ),
        shop=ProformaShop(
            name=shop.get("name"),
            email=shop.get("email"),
            address=_build_address(shop.get("billingAddress")),
            company=company,
        ),
        has_company_data=bool(company.partita_iva or company.codice_fiscale),
        has_customer_data=bool(invoice.partita_iva or invoice.codice_fiscale),
    )


# ── Internal helpers ──────────────────────────────────────────────────


def _build_customer(node: Mapping[str, Any], invoice_data: Any) -> ProformaCustomer:
    snapshot_raw = invoice_data.get("value") if isinstance(invoice_data, Mapping) else invoice_data
    profile = edges_to_map(node.get("metafields"))
    resolved = resolve(order_snapshot=snapshot_raw, customer_profile=profile)
    values = resolved.values

    full_name = f"{node.get('firstName') or ''} {node.get('lastName') or ''}".strip()

    return ProformaCustomer(
        id=node.get("id"),
        name=node.get("displayName") or full_name or None,
        email=node.get("email"),
        phone=node.get("phone"),
        invoice=CustomerInvoiceBlock(
            customer_type=resolved.customer_type,
            ragione_sociale=values.get("ragione_sociale"),
            partita_iva=values.get("partita_iva"),
            codice_fiscale=values.get("codice_fiscale"),
            pec=values.get("pec"),
            codice_destinatario=values.get("codice_sdi"),
            sede_legale=SedeLegale(**{part: values.get(key) for key, part in SEDE_LEGALE_PARTS.items()}),
            sources=resolved.sources,
        ),
    )


def _build_company(shop: Mapping[str, Any]) -> CompanyData:
    metafields = edges_to_map(shop.get("metafields"))
    return CompanyData(**{key: metafields.get(key) or None for key in COMPANY_DATA_KEYS})


def _build_address(node: Mapping[str, Any] | None) -> ProformaAddress | None:
    if not node:
        return None
    return ProformaAddress(**{k: node.get(k) for k in ProformaAddress.model_fields})


def _build_line_item(node: Mapping[str, Any]) -> ProformaLineItem:
    quantity = int(node.get("quantity") or 0)
    final_price = _money(node.get("discountedUnitPriceSet"))
    return ProformaLineItem(
        title=node.get("title") or "",
        variant_title=node.get("variantTitle") or "",
        sku=node.get("sku") or "",
        quantity=quantity,
        original_price=_money(node.get("originalUnitPriceSet")),
        final_price=final_price,
        final_line_price=(final_price * quantity).quantize(_CENT),
    )


def _edges(connection: Mapping[str, Any] | None) -> list[Mapping[str, Any]]:
    return list((connection or {}).get("edges") or [])


def _money(money_set: Mapping[str, Any] | None) -> Decimal:
    """Amount of a MoneyBag's shopMoney; 0 when absent or unparsable."""
    amount = ((money_set or {}).get("shopMoney") or {}).get("amount")
    if amount is None:
        return Decimal("0")
    try:
        return Decimal(str(amount))
    except InvalidOperation:
        logger.warning("Unparsable money amount: %s", amount)
        return Decimal("0")


def _parse_datetime(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Could not parse order createdAt: %s", raw)
        return None
