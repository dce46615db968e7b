"""Shared fixtures for storefront tests."""
import json
from typing import Callable, List

import httpx
import pytest

from storefront.storefront_client import StorefrontClient

STORE_DOMAIN = "my-store.myshopify.com"
ACCESS_TOKEN = "test-token"
API_VERSIONS = ["2024-10", "2024-07", "2024-01"]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)

    def payloads(self) -> List[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def make_client():
    """Build a StorefrontClient whose requests go to the given handler."""

    def factory(handler, **overrides):
        transport = RecordingTransport(handler)
        options = {
            "store_domain": STORE_DOMAIN,
            "access_token": ACCESS_TOKEN,
            "api_versions": API_VERSIONS,
            "timeout": 5,
        }
        options.update(overrides)
        return StorefrontClient(transport=transport, **options), transport

    return factory


def product_node(**overrides) -> dict:
    """A Storefront API product node as returned by the catalog query."""
    node = {
        "id": "gid://shopify/Product/123",
        "title": "Bella Skirt",
        "handle": "bella-skirt",
        "description": "A flowing skirt",
        "descriptionHtml": "<p>A flowing skirt</p>",
        "images": {
            "edges": [
                {"node": {"url": "https://cdn.shopify.com/skirt-1.png", "altText": None}},
                {"node": {"url": "", "altText": None}},
                {"node": {"url": "https://cdn.shopify.com/skirt-2.png", "altText": "Back"}},
            ]
        },
        "variants": {
            "edges": [
                {
                    "node": {
                        "id": "gid://shop/ProductVariant/999",
                        "title": "S",
                        "price": {"amount": "89.99", "currencyCode": "USD"},
                        "availableForSale": True,
                        "selectedOptions": [{"name": "Size", "value": "S"}],
                    }
                },
                {
                    "node": {
                        "id": "gid://shop/ProductVariant/1000",
                        "title": "M",
                        "price": {"amount": "89.99", "currencyCode": "USD"},
                        "availableForSale": False,
                        "selectedOptions": [{"name": "Size", "value": "M"}],
                    }
                },
            ]
        },
        "options": [
            {"name": "Color", "values": ["Ivory"]},
            {"name": "Size", "values": ["S", "M"]},
        ],
        "metafields": [],
    }
    node.update(overrides)
    return node


def products_body(*nodes) -> dict:
    return {"data": {"products": {"edges": [{"node": node} for node in nodes]}}}
