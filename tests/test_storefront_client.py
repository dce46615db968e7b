"""Tests for the Storefront API client and its version fallback."""

import httpx
import pytest

from storefront.exceptions import ApiError, ConfigurationError, TransportError
from storefront.storefront_client import (
    ACCESS_TOKEN_HEADER,
    StorefrontClient,
    normalize_store_domain,
)
from tests.conftest import ACCESS_TOKEN, product_node, products_body


def _version(request: httpx.Request) -> str:
    return request.url.path.split("/")[2]


class TestNormalizeStoreDomain:
    def test_strips_scheme_and_trailing_slash(self):
        assert normalize_store_domain("https://my-store.myshopify.com/") == "my-store.myshopify.com"

    def test_strips_whitespace_and_http(self):
        assert normalize_store_domain("  http://shop.example.com ") == "shop.example.com"

    def test_rejects_domain_without_dot(self):
        with pytest.raises(ConfigurationError, match="your-store.myshopify.com"):
            normalize_store_domain("my-store")


class TestConfiguration:
    def test_missing_token_raises_configuration_error(self):
        client = StorefrontClient(store_domain="my-store.myshopify.com", access_token="")

        with pytest.raises(ConfigurationError, match="SHOPIFY_STOREFRONT_ACCESS_TOKEN"):
            client.fetch_products()

    def test_missing_domain_raises_configuration_error(self):
        client = StorefrontClient(store_domain="", access_token="token")

        with pytest.raises(ConfigurationError, match="SHOPIFY_STORE_DOMAIN"):
            client.fetch_products()

    def test_configuration_error_is_not_absorbed(self, make_client):
        client, transport = make_client(lambda request: httpx.Response(200, json={}), store_domain="localhost")

        with pytest.raises(ConfigurationError):
            client.fetch_products()
        assert transport.requests == []


class TestFetchProducts:
    def test_request_shape(self, make_client):
        client, transport = make_client(
            lambda request: httpx.Response(200, json=products_body(product_node())),
            store_domain="https://my-store.myshopify.com/",
        )

        products = client.fetch_products()

        assert len(products) == 1
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://my-store.myshopify.com/api/2024-10/graphql.json"
        assert request.headers[ACCESS_TOKEN_HEADER] == ACCESS_TOKEN
        payload = transport.payloads()[0]
        assert "products(first: $first)" in payload["query"]
        assert payload["variables"] == {"first": 250}

    def test_returns_raw_nodes(self, make_client):
        node = product_node()
        client, _ = make_client(lambda request: httpx.Response(200, json=products_body(node)))

        assert client.fetch_products() == [node]

    def test_empty_catalog_stops_without_fallback(self, make_client):
        client, transport = make_client(lambda request: httpx.Response(200, json={"data": {"products": None}}))

        assert client.fetch_products() == []
        assert len(transport.requests) == 1

    def test_non_json_falls_back_to_next_version(self, make_client):
        def handler(request):
            if _version(request) == "2024-10":
                return httpx.Response(404, text="<html>Not found</html>", headers={"content-type": "text/html"})
            return httpx.Response(200, json=products_body(product_node()))

        client, transport = make_client(handler)

        assert len(client.fetch_products()) == 1
        assert [_version(r) for r in transport.requests] == ["2024-10", "2024-07"]

    def test_graphql_errors_fall_back_to_next_version(self, make_client):
        def handler(request):
            if _version(request) in ("2024-10", "2024-07"):
                return httpx.Response(200, json={"errors": [{"message": "Field 'metafields' doesn't exist"}]})
            return httpx.Response(200, json=products_body(product_node()))

        client, transport = make_client(handler)

        assert len(client.fetch_products()) == 1
        assert len(transport.requests) == 3

    def test_all_versions_failing_raises_last_error(self, make_client):
        def handler(request):
            version = _version(request)
            return httpx.Response(
                200,
                json={"errors": [{"message": f"bad query on {version}"}, {"message": "second"}]},
            )

        client, transport = make_client(handler)

        with pytest.raises(ApiError) as exc_info:
            client.fetch_products()
        assert str(exc_info.value) == "bad query on 2024-01; second"
        assert exc_info.value.errors == ["bad query on 2024-01", "second"]
        assert len(transport.requests) == 3

    def test_http_error_status_without_error_list(self, make_client):
        client, _ = make_client(
            lambda request: httpx.Response(401, json={}),
            api_versions=["2024-10"],
        )

        with pytest.raises(ApiError, match="401") as exc_info:
            client.fetch_products()
        assert exc_info.value.status_code == 401

    def test_last_error_can_be_transport_error(self, make_client):
        client, _ = make_client(
            lambda request: httpx.Response(200, text="<html></html>", headers={"content-type": "text/html"}),
            api_versions=["2024-10", "2024-07"],
        )

        with pytest.raises(TransportError) as exc_info:
            client.fetch_products()
        assert "HTML error page" in exc_info.value.hint

    def test_network_failure_is_transport_error(self, make_client):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, transport = make_client(handler)

        with pytest.raises(TransportError, match="ConnectError"):
            client.fetch_products()
        assert len(transport.requests) == 3
