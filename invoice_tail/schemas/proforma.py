"""Pydantic schemas for the proforma invoice template context."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from invoice_tail.models.enums import CustomerType, ProvenanceSource
from invoice_tail.schemas.api import CompanyData
from invoice_tail.schemas.invoice import SedeLegale


class ProformaAddress(BaseModel):
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    province: str | None = None
    zip: str | None = None
    country: str | None = None
    phone: str | None = None


class ProformaLineItem(BaseModel):
    title: str
    variant_title: str = ""
    sku: str = ""
    quantity: int = 0
    original_price: Decimal = Decimal("0")
    final_price: Decimal = Decimal("0")
    final_line_price: Decimal = Decimal("0")   # final_price × quantity, 2 decimals


class CustomerInvoiceBlock(BaseModel):
    """Buyer invoice data: order snapshot first, customer metafields as fallback."""

    customer_type: CustomerType = CustomerType.COMPANY
    ragione_sociale: str | None = None
    partita_iva: str | None = None
    codice_fiscale: str | None = None
    pec: str | None = None
    codice_destinatario: str | None = None     # codice SDI
    sede_legale: SedeLegale = Field(default_factory=SedeLegale)
    sources: dict[str, ProvenanceSource] = Field(default_factory=dict)


class ProformaCustomer(BaseModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    invoice: CustomerInvoiceBlock = Field(default_factory=CustomerInvoiceBlock)


class ProformaOrder(BaseModel):
    order_name: str
    created_at: datetime | None = None
    po_number: str | None = None
    customer: ProformaCustomer = Field(default_factory=ProformaCustomer)
    billing_address: ProformaAddress | None = None
    shipping_address: ProformaAddress | None = None
    line_items: list[ProformaLineItem] = Field(default_factory=list)
    subtotal_price: Decimal = Decimal("0")
    shipping_price: Decimal = Decimal("0")
    tax_price: Decimal = Decimal("0")
    total_price: Decimal = Decimal("0")
    gateway: str | None = None
    currency: str | None = None


class ProformaShop(BaseModel):
    name: str | None = None
    email: str | None = None
    address: ProformaAddress | None = None
    company: CompanyData = Field(default_factory=CompanyData)


class ProformaContext(BaseModel):
    """Everything the proforma template renders."""

    order: ProformaOrder
    shop: ProformaShop
    has_company_data: bool = False
    has_customer_data: bool = False
