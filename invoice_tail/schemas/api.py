"""Request/response schemas for the storefront and admin HTTP endpoints.

Field aliases are camelCase to match what the checkout extension sends and reads.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from invoice_tail.models.enums import CustomerType

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CustomerInvoiceDataRequest(BaseModel):
    """Body of POST /api/customer-invoice-data."""

    model_config = ConfigDict(populate_by_name=True)

    customer_id: str | int | None = Field(default=None, alias="customerId")
    cart_properties: dict[str, Any] | None = Field(default=None, alias="cartProperties")


class CustomerInvoiceSaveRequest(BaseModel):
    """Body of POST /api/customer-invoice-save."""

    model_config = ConfigDict(populate_by_name=True)

    customer_id: str | int | None = Field(default=None, alias="customerId")
    values: dict[str, Any] | None = None


class CustomerInvoiceEmitRequest(BaseModel):
    """Body of POST /api/customer-invoice-emit."""

    model_config = ConfigDict(populate_by_name=True)

    customer_id: str | int | None = Field(default=None, alias="customerId")
    value: bool = False


class CompanyDataRequest(BaseModel):
    """Body of POST /api/company-data."""

    model_config = ConfigDict(populate_by_name=True)

    company_data: dict[str, Any] = Field(default_factory=dict, alias="companyData")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class CustomerInvoiceView(BaseModel):
    """What the checkout tile needs to render the invoice toggle and form."""

    model_config = ConfigDict(populate_by_name=True)

    is_invoice_possible: bool = Field(alias="isInvoicePossible")
    missing_fields: list[str] = Field(default_factory=list, alias="missingFields")
    values: dict[str, str] = Field(default_factory=dict)
    customer_type: CustomerType = Field(default=CustomerType.COMPANY, alias="customerType")
    emit_invoice: bool = Field(default=False, alias="emitInvoice")        # stored profile flag
    request_invoice: bool = Field(default=False, alias="requestInvoice")  # cart-resolved flag


class SaveInvoiceResult(BaseModel):
    """Outcome of saving a customer's invoice data."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    errors: dict[str, str] = Field(default_factory=dict)
    values: dict[str, str] = Field(default_factory=dict)
    missing_fields: list[str] = Field(default_factory=list, alias="missingFields")
    is_invoice_possible: bool = Field(default=False, alias="isInvoicePossible")
    saved: list[dict[str, Any]] = Field(default_factory=list)


class CompanyData(BaseModel):
    """Seller identity printed on the proforma (shop "company" metafields)."""

    partita_iva: str | None = None
    codice_fiscale: str | None = None
    rea: str | None = None
    capitale_sociale: str | None = None
    pec: str | None = None
    codice_sdi: str | None = None


COMPANY_DATA_KEYS: tuple[str, ...] = tuple(CompanyData.model_fields)


class CompanySaveResult(BaseModel):
    success: bool
    errors: dict[str, str] = Field(default_factory=dict)
    saved: list[dict[str, Any]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Admin: orders with an invoice request, webhook subscriptions
# ---------------------------------------------------------------------------


class InvoiceOrderSummary(BaseModel):
    """One row of the admin order list."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    created_at: str | None = Field(default=None, alias="createdAt")
    total_price: Decimal = Field(default=Decimal("0"), alias="totalPrice")
    currency: str | None = None
    unpaid: bool = False
    fulfillment_status: str | None = Field(default=None, alias="fulfillmentStatus")
    line_item_count: int = Field(default=0, alias="lineItemCount")
    customer_name: str | None = Field(default=None, alias="customerName")
    customer_email: str | None = Field(default=None, alias="customerEmail")
    ragione_sociale: str | None = Field(default=None, alias="ragioneSociale")
    emitted: bool = False


class PageInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_next_page: bool = Field(default=False, alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


class InvoiceOrderPage(BaseModel):
    """A page of orders, filtered to those with invoice/requested = true."""

    model_config = ConfigDict(populate_by_name=True)

    orders: list[InvoiceOrderSummary] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class WebhookCreateRequest(BaseModel):
    """Body of POST /api/create-webhook."""

    topic: str | None = None


class WebhookUpdateRequest(BaseModel):
    """Body of POST /api/update-webhook."""

    model_config = ConfigDict(populate_by_name=True)

    webhook_id: str | None = Field(default=None, alias="webhookId")
    topic: str | None = None
