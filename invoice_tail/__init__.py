"""invoice-tail: Italian invoice data capture and proforma rendering for Shopify."""

__version__ = "0.1.0"
