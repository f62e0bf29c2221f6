"""HTTP endpoints: storefront extension API, admin order list, webhooks, proforma page.

Thin glue: each route parses the body, calls a service, and maps
ShopifyAPIError to a 500 JSON response.
"""
# ruff: noqa: B008

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, JSONResponse

from invoice_tail.integrations.shopify.client import ShopifyAdminClient, shopify_client
from invoice_tail.integrations.shopify.schemas import ShopifyAPIError
from invoice_tail.proforma import build_proforma_context, render_proforma
from invoice_tail.schemas.api import (
    CompanyDataRequest,
    CustomerInvoiceDataRequest,
    CustomerInvoiceEmitRequest,
    CustomerInvoiceSaveRequest,
    WebhookCreateRequest,
    WebhookUpdateRequest,
)
from invoice_tail.services.company import load_company_data, save_company_data
from invoice_tail.services.customer_invoice import (
    load_customer_invoice,
    save_customer_invoice,
    set_invoice_request,
)
from invoice_tail.services.order_list import list_invoice_orders
from invoice_tail.services.orders import InvalidOrderPayload, handle_order_created
from invoice_tail.services.webhooks import (
    AppUrlNotConfigured,
    UnsupportedWebhookTopic,
    register_webhook,
    update_webhook,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["invoice"])


def get_shopify_client() -> ShopifyAdminClient:
    """FastAPI dependency: the Admin API client (overridden in tests)."""
    return shopify_client


def _api_error(exc: ShopifyAPIError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "errors": exc.errors or str(exc)},
    )


def _require_customer(customer_id: Any) -> str:
    if customer_id is None or customer_id == "":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing customerId")
    return str(customer_id)


# ── Storefront extension API ─────────────────────────────────────────


@router.post("/api/customer-invoice-data")
async def customer_invoice_data(
    body: CustomerInvoiceDataRequest,
    client: ShopifyAdminClient = Depends(get_shopify_client),
) -> Any:
    customer_id = _require_customer(body.customer_id)
    try:
        view = await load_customer_invoice(client, customer_id, body.cart_properties)
    except ShopifyAPIError as exc:
        return _api_error(exc)
    return {"success": True, "invoice": view.model_dump(mode="json", by_alias=True)}


@router.post("/api/customer-invoice-save")
async def customer_invoice_save(
    body: CustomerInvoiceSaveRequest,
    client: ShopifyAdminClient = Depends(get_shopify_client),
) -> Any:
    customer_id = _require_customer(body.customer_id)
    if not body.values:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing data")
    try:
        result = await save_customer_invoice(client, customer_id, body.values)
    except ShopifyAPIError as exc:
        return _api_error(exc)

    content = result.model_dump(mode="json", by_alias=True)
    if not result.success:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)
    return content


@router.post("/api/customer-invoice-emit")
async def customer_invoice_emit(
    body: CustomerInvoiceEmitRequest,
    client: ShopifyAdminClient = Depends(get_shopify_client),
) -> Any:
    customer_id = _require_customer(body.customer_id)
    try:
        saved = await set_invoice_request(client, customer_id, body.value)
    except ShopifyAPIError as exc:
        return _api_error(exc)
    return {"success": True, "saved": saved}


# ── Shop company data ────────────────────────────────────────────────


@router.get("/api/company-data")
async def company_data(client: ShopifyAdminClient = Depends(get_shopify_client)) -> Any:
    try:
        shop = await load_company_data(client)
    except ShopifyAPIError:
        logger.exception("Failed to load company data")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Failed to load company data"},
        )
    return {
        "success": True,
        "shopId": shop.shop_id,
        "shopName": shop.shop_name,
        "companyData": shop.company_data,
    }


@router.post("/api/company-data")
async def company_data_save(
    body: CompanyDataRequest,
    client: ShopifyAdminClient = Depends(get_shopify_client),
) -> Any:
    try:
        result = await save_company_data(client, body.company_data)
    except ShopifyAPIError as exc:
        return _api_error(exc)

    content = result.model_dump(mode="json")
    if not result.success:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)
    return content


# ── Admin order list ─────────────────────────────────────────────────


@router.get("/api/invoice-orders")
async def invoice_orders(
    after: str | None = None,
    client: ShopifyAdminClient = Depends(get_shopify_client),
) -> Any:
    try:
        page = await list_invoice_orders(client, after)
    except ShopifyAPIError as exc:
        return _api_error(exc)
    return {"success": True, **page.model_dump(mode="json", by_alias=True)}


# ── Webhook subscriptions ────────────────────────────────────────────


def _webhook_error(exc: UnsupportedWebhookTopic | AppUrlNotConfigured) -> JSONResponse:
    if isinstance(exc, UnsupportedWebhookTopic):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=code, content={"success": False, "error": str(exc)})


@router.post("/api/create-webhook")
async def create_webhook(
    body: WebhookCreateRequest,
    client: ShopifyAdminClient = Depends(get_shopify_client),
) -> Any:
    if not body.topic:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing topic")
    try:
        subscription = await register_webhook(client, body.topic)
    except (UnsupportedWebhookTopic, AppUrlNotConfigured) as exc:
        return _webhook_error(exc)
    except ShopifyAPIError as exc:
        return _api_error(exc)
    return {
        "success": True,
        "webhook": subscription.model_dump(mode="json", by_alias=True),
        "message": f"Webhook {body.topic} created successfully",
    }


@router.post("/api/update-webhook")
async def update_webhook_subscription(
    body: WebhookUpdateRequest,
    client: ShopifyAdminClient = Depends(get_shopify_client),
) -> Any:
    if not body.webhook_id or not body.topic:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing webhookId or topic")
    try:
        subscription = await update_webhook(client, body.webhook_id, body.topic)
    except (UnsupportedWebhookTopic, AppUrlNotConfigured) as exc:
        return _webhook_error(exc)
    except ShopifyAPIError as exc:
        return _api_error(exc)
    return {
        "success": True,
        "webhook": subscription.model_dump(mode="json", by_alias=True),
        "message": f"Webhook {body.topic} updated successfully",
    }


# ── Webhooks ─────────────────────────────────────────────────────────


@router.post("/webhooks/orders/create")
async def orders_create_webhook(
    request: Request,
    client: ShopifyAdminClient = Depends(get_shopify_client),
) -> Any:
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    try:
        outcome = await handle_order_created(client, payload)
    except InvalidOrderPayload as exc:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": str(exc)},
        )
    except ShopifyAPIError as exc:
        return _api_error(exc)

    if not outcome.requested:
        return {"success": True, "message": "Nessuna richiesta fattura per questo cliente."}

    return {
        "success": True,
        "saved": outcome.saved,
        "isInvoicePossible": outcome.eligibility.is_invoice_possible if outcome.eligibility else False,
        "missingFields": outcome.eligibility.missing_fields if outcome.eligibility else [],
    }


# ── Proforma ─────────────────────────────────────────────────────────


@router.get("/app/{order_id}/proforma", response_class=HTMLResponse)
async def proforma(
    order_id: str,
    client: ShopifyAdminClient = Depends(get_shopify_client),
) -> HTMLResponse:
    try:
        order = await client.get_order_for_proforma(order_id)
        if not order:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        shop = await client.get_shop_for_proforma()
    except ShopifyAPIError as exc:
        logger.error("Proforma for order %s failed: %s", order_id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate proforma invoice",
        ) from exc

    context = build_proforma_context(order, shop)
    return HTMLResponse(render_proforma(context))
