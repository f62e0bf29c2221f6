"""Proforma HTML rendering with Jinja2."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from invoice_tail.proforma.formatters import (
    format_address,
    format_date,
    format_money,
    format_payment_method,
)
from invoice_tail.schemas.proforma import ProformaContext

_template_dir = Path(__file__).parent / "templates"

environment = Environment(
    loader=FileSystemLoader(str(_template_dir)),
    autoescape=select_autoescape(["html"]),
)

# Register custom filters
environment.filters["money"] = format_money
environment.filters["date"] = format_date
environment.filters["format_address"] = format_address
environment.filters["payment_method"] = format_payment_method


def render_proforma(context: ProformaContext, template_name: str = "proforma.html") -> str:
    """Render the proforma invoice document as HTML."""
    template = environment.get_template(template_name)
    return template.render(
        order=context.order,
        shop=context.shop,
        has_company_data=context.has_company_data,
        has_customer_data=context.has_customer_data,
    )
