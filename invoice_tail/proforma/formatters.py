"""Jinja2 custom filters for Italian locale formatting.

All filters are registered on the proforma Jinja2 environment in renderer.py.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

PAYMENT_METHODS: dict[str, str] = {
    "cash": "Contanti",
    "manual": "Manuale",
    "bank_transfer": "Bonifico bancario",
    "shopify_payments": "Shopify Payments",
    "paypal": "PayPal",
    "stripe": "Carta di credito",
    "bogus": "Test (Bogus Gateway)",
}


def format_currency(value: Decimal | float | int | str | None) -> str:
    """Format as Italian currency: 1234.50 -> "1.234,50"."""
    if value is None or value == "":
        return "-"
    try:
        d = Decimal(str(value))
    except InvalidOperation:
        return "-"
    # Format with 2 decimal places, then swap separators for Italian locale
    formatted = f"{d:,.2f}"
    # US: 1,234.50 -> Italian: 1.234,50
    return formatted.replace(",", "X").replace(".", ",").replace("X", ".")


def format_money(value: Decimal | float | int | str | None) -> str:
    """Currency with euro sign: 1234.5 -> "€1.234,50"."""
    formatted = format_currency(value)
    if formatted == "-":
        return formatted
    return f"€{formatted}"


def format_date(value: datetime | str | None) -> str:
    """Format as DD/MM/YYYY; ISO strings are parsed first."""
    if value is None or value == "":
        return "-"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value.strftime("%d/%m/%Y")


def format_address(address: Mapping[str, Any] | Any | None) -> str:
    """One-line address: "Via Roma 1, 20100 Milano, MI, Italy"."""
    if address is None:
        return ""
    if not isinstance(address, Mapping):
        address = getattr(address, "model_dump", dict)()

    def part(key: str) -> str:
        return str(address.get(key) or "").strip()

    town = f"{part('zip')} {part('city')}".strip()
    parts = [part("address1"), part("address2"), town, part("province"), part("country")]
    return ", ".join(p for p in parts if p)


def format_payment_method(gateway: str | None) -> str:
    """Gateway name → Italian label; unknown gateways are shown as-is."""
    if not gateway:
        return "Da definire"
    return PAYMENT_METHODS.get(gateway.lower(), gateway)
