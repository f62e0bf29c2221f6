"""Proforma invoice document: context building and HTML rendering."""

from invoice_tail.proforma.builder import build_proforma_context
from invoice_tail.proforma.renderer import render_proforma

__all__ = ["build_proforma_context", "render_proforma"]
