"""Tests for the Shopify Admin GraphQL client.

Covers:
- Customer metafields flattened from edges
- metafieldsSet: variables, userErrors, empty input
- Shop company data and proforma order queries
- Order list variables, webhook subscription create/update and userErrors
- Timeout / HTTP error / transport error / top-level GraphQL errors
- gid helpers
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from invoice_tail.integrations.shopify.client import ShopifyAdminClient, edges_to_map
from invoice_tail.integrations.shopify.schemas import (
    MetafieldInput,
    MetafieldUserError,
    ShopifyAPIError,
    WebhookUserError,
    to_gid,
)
from invoice_tail.models.enums import MetafieldType

# ── Helpers ──────────────────────────────────────────────────────────


def _make_response(payload: dict, status_code: int = 200) -> MagicMock:
    """Build a mock httpx.Response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    resp.raise_for_status = MagicMock()  # no-op for 200
    return resp


def _patch_http(mock_client_cls: MagicMock, post: AsyncMock) -> AsyncMock:
    mock_http = AsyncMock()
    mock_http.post = post
    mock_client_cls.return_value.__aenter__ = AsyncMock(return_value=mock_http)
    mock_client_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    return mock_http


def _client() -> ShopifyAdminClient:
    client = ShopifyAdminClient()
    client._url = "https://test-shop.myshopify.com/admin/api/2025-01/graphql.json"
    client._access_token = "shpat_test"
    return client


def _edges(pairs: dict[str, str]) -> dict:
    return {"edges": [{"node": {"key": k, "value": v}} for k, v in pairs.items()]}


# ── Helpers under test ───────────────────────────────────────────────


class TestEdgesToMap:
    def test_flattens(self):
        assert edges_to_map(_edges({"pec": "a@pec.it", "codice_sdi": "M5UXCR1"})) == {
            "pec": "a@pec.it",
            "codice_sdi": "M5UXCR1",
        }

    def test_none_and_empty(self):
        assert edges_to_map(None) == {}
        assert edges_to_map({"edges": None}) == {}

    def test_skips_null_values(self):
        connection = {"edges": [{"node": {"key": "pec", "value": None}}, {"node": None}]}
        assert edges_to_map(connection) == {}


class TestToGid:
    def test_numeric(self):
        assert to_gid("Customer", 123) == "gid://shopify/Customer/123"

    def test_gid_passthrough(self):
        assert to_gid("Customer", "gid://shopify/Customer/123") == "gid://shopify/Customer/123"


# ── Client tests ─────────────────────────────────────────────────────


class TestGetCustomerMetafields:
    @pytest.mark.asyncio()
    async def test_returns_flat_map(self):
        payload = {"data": {"customer": {"metafields": _edges({"codice_fiscale": "RSSMRA80A01H501U"})}}}
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_http = _patch_http(mock_client_cls, AsyncMock(return_value=_make_response(payload)))
            result = await client.get_customer_metafields("42")

        assert result == {"codice_fiscale": "RSSMRA80A01H501U"}
        body = mock_http.post.call_args.kwargs["json"]
        assert body["variables"] == {"id": "gid://shopify/Customer/42", "namespace": "invoice"}
        headers = mock_http.post.call_args.kwargs["headers"]
        assert headers["X-Shopify-Access-Token"] == "shpat_test"

    @pytest.mark.asyncio()
    async def test_unknown_customer_is_empty(self):
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            _patch_http(mock_client_cls, AsyncMock(return_value=_make_response({"data": {"customer": None}})))
            result = await client.get_customer_metafields("42")

        assert result == {}


class TestSetMetafields:
    @pytest.mark.asyncio()
    async def test_sends_inputs(self):
        payload = {"data": {"metafieldsSet": {"metafields": [{"id": "1", "key": "pec", "value": "a@pec.it"}], "userErrors": []}}}
        client = _client()
        inputs = [
            MetafieldInput(owner_id="gid://shopify/Customer/1", key="pec", value="a@pec.it"),
            MetafieldInput(owner_id="gid://shopify/Customer/1", key="request_invoice", type=MetafieldType.BOOLEAN, value="true"),
        ]

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_http = _patch_http(mock_client_cls, AsyncMock(return_value=_make_response(payload)))
            saved = await client.set_metafields(inputs)

        assert saved == [{"id": "1", "key": "pec", "value": "a@pec.it"}]
        sent = mock_http.post.call_args.kwargs["json"]["variables"]["metafields"]
        assert sent[1] == {
            "ownerId": "gid://shopify/Customer/1",
            "namespace": "invoice",
            "key": "request_invoice",
            "type": "boolean",
            "value": "true",
        }

    @pytest.mark.asyncio()
    async def test_user_errors_raise(self):
        payload = {"data": {"metafieldsSet": {"metafields": [], "userErrors": [{"field": ["value"], "message": "bad"}]}}}
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            _patch_http(mock_client_cls, AsyncMock(return_value=_make_response(payload)))
            with pytest.raises(MetafieldUserError) as exc_info:
                await client.set_metafields([MetafieldInput(owner_id="gid://shopify/Customer/1", key="pec", value="x")])

        assert exc_info.value.errors == [{"field": ["value"], "message": "bad"}]

    @pytest.mark.asyncio()
    async def test_empty_input_skips_http(self):
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            saved = await client.set_metafields([])

        assert saved == []
        mock_client_cls.assert_not_called()


class TestShopAndOrderQueries:
    @pytest.mark.asyncio()
    async def test_shop_company(self):
        payload = {"data": {"shop": {"id": "gid://shopify/Shop/9", "name": "Negozio", "metafields": _edges({"partita_iva": "12345678901"})}}}
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            _patch_http(mock_client_cls, AsyncMock(return_value=_make_response(payload)))
            shop = await client.get_shop_company()

        assert shop.shop_id == "gid://shopify/Shop/9"
        assert shop.shop_name == "Negozio"
        assert shop.company_data == {"partita_iva": "12345678901"}

    @pytest.mark.asyncio()
    async def test_order_not_found(self):
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_http = _patch_http(mock_client_cls, AsyncMock(return_value=_make_response({"data": {"order": None}})))
            order = await client.get_order_for_proforma("1001")

        assert order is None
        assert mock_http.post.call_args.kwargs["json"]["variables"]["id"] == "gid://shopify/Order/1001"


class TestErrors:
    @pytest.mark.asyncio()
    async def test_timeout(self):
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            _patch_http(mock_client_cls, AsyncMock(side_effect=httpx.TimeoutException("timeout")))
            with pytest.raises(ShopifyAPIError, match="timeout"):
                await client.get_customer_metafields("1")

    @pytest.mark.asyncio()
    async def test_http_status_error(self):
        response = _make_response({}, status_code=401)
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "unauthorized", request=MagicMock(), response=response
        )
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            _patch_http(mock_client_cls, AsyncMock(return_value=response))
            with pytest.raises(ShopifyAPIError, match="401"):
                await client.get_shop_company()

    @pytest.mark.asyncio()
    async def test_transport_error(self):
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            _patch_http(mock_client_cls, AsyncMock(side_effect=httpx.ConnectError("refused")))
            with pytest.raises(ShopifyAPIError, match="unreachable"):
                await client.get_shop_for_proforma()

    @pytest.mark.asyncio()
    async def test_graphql_errors(self):
        payload = {"errors": [{"message": "Throttled"}]}
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            _patch_http(mock_client_cls, AsyncMock(return_value=_make_response(payload)))
            with pytest.raises(ShopifyAPIError) as exc_info:
                await client.execute("{ shop { id } }")

        assert exc_info.value.errors == [{"message": "Throttled"}]


class TestOrderList:
    @pytest.mark.asyncio()
    async def test_variables_and_connection(self):
        orders = {"edges": [], "pageInfo": {"hasNextPage": False, "endCursor": None}}
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_http = _patch_http(mock_client_cls, AsyncMock(return_value=_make_response({"data": {"orders": orders}})))
            result = await client.list_orders(first=15, after="cursor-1")

        assert result == orders
        variables = mock_http.post.call_args.kwargs["json"]["variables"]
        assert variables == {"first": 15, "after": "cursor-1", "namespace": "invoice"}

    @pytest.mark.asyncio()
    async def test_missing_connection_is_empty(self):
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            _patch_http(mock_client_cls, AsyncMock(return_value=_make_response({"data": {}})))
            assert await client.list_orders() == {}


class TestWebhookSubscriptions:
    CALLBACK = "https://app.example.com/webhooks/orders/create"

    def _result(self, user_errors: list | None = None) -> dict:
        return {
            "userErrors": user_errors or [],
            "webhookSubscription": None if user_errors else {
                "id": "gid://shopify/WebhookSubscription/5",
                "topic": "ORDERS_CREATE",
                "endpoint": {"__typename": "WebhookHttpEndpoint", "callbackUrl": self.CALLBACK},
            },
        }

    @pytest.mark.asyncio()
    async def test_create(self):
        payload = {"data": {"webhookSubscriptionCreate": self._result()}}
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_http = _patch_http(mock_client_cls, AsyncMock(return_value=_make_response(payload)))
            subscription = await client.create_webhook_subscription("ORDERS_CREATE", self.CALLBACK)

        assert subscription.id == "gid://shopify/WebhookSubscription/5"
        assert subscription.callback_url == self.CALLBACK
        variables = mock_http.post.call_args.kwargs["json"]["variables"]
        assert variables == {
            "topic": "ORDERS_CREATE",
            "webhookSubscription": {"callbackUrl": self.CALLBACK, "format": "JSON"},
        }

    @pytest.mark.asyncio()
    async def test_update(self):
        payload = {"data": {"webhookSubscriptionUpdate": self._result()}}
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_http = _patch_http(mock_client_cls, AsyncMock(return_value=_make_response(payload)))
            subscription = await client.update_webhook_subscription("gid://shopify/WebhookSubscription/5", self.CALLBACK)

        assert subscription.topic == "ORDERS_CREATE"
        variables = mock_http.post.call_args.kwargs["json"]["variables"]
        assert variables == {
            "id": "gid://shopify/WebhookSubscription/5",
            "webhookSubscription": {"callbackUrl": self.CALLBACK},
        }

    @pytest.mark.asyncio()
    async def test_user_errors_raise(self):
        errors = [{"field": ["callbackUrl"], "message": "Address for this topic has already been taken"}]
        payload = {"data": {"webhookSubscriptionCreate": self._result(errors)}}
        client = _client()

        with patch("httpx.AsyncClient") as mock_client_cls:
            _patch_http(mock_client_cls, AsyncMock(return_value=_make_response(payload)))
            with pytest.raises(WebhookUserError) as exc_info:
                await client.create_webhook_subscription("ORDERS_CREATE", self.CALLBACK)

        assert exc_info.value.errors == errors
