"""Tests for the customer invoice and shop company-data services.

Covers:
- Load: cart properties over stored metafields, emit/request flags
- Save: validation blocks writes, metafield inputs incl. invoice_data JSON
- Emit toggle writes a boolean metafield
- Company data: validation, non-empty writes, missing shop id
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from invoice_tail.integrations.shopify.client import ShopifyAdminClient
from invoice_tail.integrations.shopify.schemas import ShopCompany, ShopifyAPIError
from invoice_tail.models.enums import CustomerType, MetafieldType
from invoice_tail.services.company import load_company_data, save_company_data
from invoice_tail.services.customer_invoice import (
    load_customer_invoice,
    save_customer_invoice,
    set_invoice_request,
)

VALID_COMPANY = {
    "customer_type": "company",
    "ragione_sociale": "Rossi Srl",
    "partita_iva": "12345678901",
    "codice_fiscale": "12345678901",
    "sede_legale_via": "Via Roma 1",
    "sede_legale_cap": "20121",
    "sede_legale_citta": "Milano",
    "sede_legale_provincia": "MI",
}


def _make_client(profile: dict | None = None, shop: ShopCompany | None = None) -> AsyncMock:
    client = AsyncMock(spec=ShopifyAdminClient)
    client.get_customer_metafields.return_value = profile or {}
    client.set_metafields.side_effect = lambda inputs: [{"key": i.key, "value": i.value} for i in inputs]
    client.get_shop_company.return_value = shop or ShopCompany(shop_id="gid://shopify/Shop/1", shop_name="Negozio")
    return client


def _written(client: AsyncMock, call: int = 0) -> dict:
    inputs = client.set_metafields.call_args_list[call].args[0]
    return {i.key: i for i in inputs}


# ── Load ─────────────────────────────────────────────────────────────


class TestLoadCustomerInvoice:
    @pytest.mark.asyncio()
    async def test_profile_only(self):
        client = _make_client({"customer_type": "individual", "codice_fiscale": "RSSMRA80A01H501U", "request_invoice": "true"})

        view = await load_customer_invoice(client, "7")

        assert view.is_invoice_possible is True
        assert view.customer_type == CustomerType.INDIVIDUAL
        assert view.emit_invoice is True
        assert view.request_invoice is False
        client.get_customer_metafields.assert_awaited_once_with("7")

    @pytest.mark.asyncio()
    async def test_cart_properties_take_priority(self):
        client = _make_client({"customer_type": "individual", "codice_fiscale": "RSSMRA80A01H501U"})

        view = await load_customer_invoice(
            client,
            "7",
            {"_invoice.requested": "true", "_invoice.codice_fiscale": ""},
        )

        assert view.values["codice_fiscale"] == ""
        assert view.missing_fields == ["codice_fiscale"]
        assert view.request_invoice is True

    @pytest.mark.asyncio()
    async def test_unprefixed_cart_properties_ignored(self):
        client = _make_client({"customer_type": "individual", "codice_fiscale": "RSSMRA80A01H501U"})

        view = await load_customer_invoice(
            client,
            "7",
            {"codice_fiscale": "BNCLGU75B02F205X", "customer_type": "company"},
        )

        assert view.values["codice_fiscale"] == "RSSMRA80A01H501U"
        assert view.customer_type == CustomerType.INDIVIDUAL
        assert view.request_invoice is False

    @pytest.mark.asyncio()
    async def test_serialized_aliases(self):
        view = await load_customer_invoice(_make_client(), "7")
        dumped = view.model_dump(mode="json", by_alias=True)
        assert set(dumped) == {
            "isInvoicePossible",
            "missingFields",
            "values",
            "customerType",
            "emitInvoice",
            "requestInvoice",
        }
        assert dumped["customerType"] == "company"


# ── Save ─────────────────────────────────────────────────────────────


class TestSaveCustomerInvoice:
    @pytest.mark.asyncio()
    async def test_valid_company_writes_fields_and_document(self):
        client = _make_client()

        result = await save_customer_invoice(client, "7", {**VALID_COMPANY, "pec": "rossi@pec.it", "unknown": "x"})

        assert result.success is True
        assert result.is_invoice_possible is True
        assert result.values["customer_type"] == "company"
        written = _written(client)
        assert "unknown" not in written
        assert written["partita_iva"].owner_id == "gid://shopify/Customer/7"
        assert written["partita_iva"].type == MetafieldType.SINGLE_LINE_TEXT
        assert written["customer_type"].value == "company"
        document = json.loads(written["invoice_data"].value)
        assert written["invoice_data"].type == MetafieldType.JSON
        assert document["sede_legale"] == {"via": "Via Roma 1", "cap": "20121", "citta": "Milano", "provincia": "MI"}
        assert document["pec"] == "rossi@pec.it"

    @pytest.mark.asyncio()
    async def test_invalid_values_write_nothing(self):
        client = _make_client()

        result = await save_customer_invoice(client, "7", {**VALID_COMPANY, "partita_iva": "123"})

        assert result.success is False
        assert set(result.errors) == {"partita_iva"}
        client.set_metafields.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_individual(self):
        client = _make_client()

        result = await save_customer_invoice(
            client,
            "gid://shopify/Customer/7",
            {"customer_type": "individual", "codice_fiscale": "RSSMRA80A01H501U"},
        )

        assert result.success is True
        document = json.loads(_written(client)["invoice_data"].value)
        assert document == {"customer_type": "individual", "codice_fiscale": "RSSMRA80A01H501U"}

    @pytest.mark.asyncio()
    async def test_write_failure_propagates(self):
        client = _make_client()
        client.set_metafields.side_effect = ShopifyAPIError("Metafield write rejected", errors=[{"message": "bad"}])

        with pytest.raises(ShopifyAPIError):
            await save_customer_invoice(client, "7", VALID_COMPANY)


class TestSetInvoiceRequest:
    @pytest.mark.asyncio()
    @pytest.mark.parametrize(("value", "expected"), [(True, "true"), (False, "false")])
    async def test_writes_boolean(self, value, expected):
        client = _make_client()

        await set_invoice_request(client, "7", value)

        written = _written(client)["request_invoice"]
        assert written.type == MetafieldType.BOOLEAN
        assert written.value == expected


# ── Company data ─────────────────────────────────────────────────────


class TestCompanyData:
    @pytest.mark.asyncio()
    async def test_load(self):
        shop = ShopCompany(shop_id="gid://shopify/Shop/1", shop_name="Negozio", company_data={"rea": "MI-123"})
        assert (await load_company_data(_make_client(shop=shop))).company_data == {"rea": "MI-123"}

    @pytest.mark.asyncio()
    async def test_save_only_non_empty(self):
        client = _make_client()

        result = await save_company_data(client, {"partita_iva": "12345678901", "rea": "", "pec": None})

        assert result.success is True
        written = _written(client)
        assert set(written) == {"partita_iva"}
        assert written["partita_iva"].namespace == "company"
        assert written["partita_iva"].owner_id == "gid://shopify/Shop/1"

    @pytest.mark.asyncio()
    async def test_invalid_rejected(self):
        client = _make_client()

        result = await save_company_data(client, {"codice_sdi": "TOO-LONG-CODE"})

        assert result.success is False
        assert "codice_sdi" in result.errors
        client.set_metafields.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_missing_shop_id(self):
        client = _make_client(shop=ShopCompany())

        with pytest.raises(ShopifyAPIError, match="shop ID"):
            await save_company_data(client, {"rea": "MI-123"})
