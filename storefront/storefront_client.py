"""
Shopify Storefront API client with error classification and API version fallback.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from storefront.config import Config
from storefront.exceptions import ApiError, ConfigurationError, TransportError, StorefrontException

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Shopify-Storefront-Access-Token"

NON_JSON_HINT = (
    "response was not JSON, likely an HTML error page; "
    "check the store domain, API version and access token"
)

PRODUCTS_QUERY = """
query getProducts($first: Int!) {
  products(first: $first) {
    edges {
      node {
        id
        title
        handle
        description
        descriptionHtml
        images(first: 20) {
          edges { node { url altText } }
        }
        variants(first: 100) {
          edges {
            node {
              id
              title
              price { amount currencyCode }
              availableForSale
              selectedOptions { name value }
            }
          }
        }
        options { name values }
        metafields(identifiers: [
          {namespace: "custom", key: "size_chart"},
          {namespace: "custom", key: "sizechart"},
          {namespace: "custom", key: "size-chart"},
          {namespace: "global", key: "size_chart"},
          {namespace: "size_chart", key: "image"}
        ]) {
          key
          namespace
          value
          type
          reference {
            ... on MediaImage { image { url altText } }
          }
        }
      }
    }
  }
}
"""


def normalize_store_domain(value: Optional[str]) -> str:
    """
    Strip whitespace, scheme and trailing slash from a store domain.

    Raises:
        ConfigurationError: If the result does not look like a host name
    """
    domain = (value or "").strip()
    if domain.lower().startswith("https://"):
        domain = domain[8:]
    elif domain.lower().startswith("http://"):
        domain = domain[7:]
    if domain.endswith("/"):
        domain = domain[:-1]
    if "." not in domain:
        raise ConfigurationError(
            f"Invalid store domain {value!r}: expected a host like 'your-store.myshopify.com'"
        )
    return domain


class StorefrontClient:
    """Client for the Shopify Storefront GraphQL API"""

    def __init__(
        self,
        store_domain: Optional[str] = None,
        access_token: Optional[str] = None,
        api_versions: Optional[Sequence[str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.store_domain = store_domain if store_domain is not None else Config.SHOPIFY_STORE_DOMAIN
        self.access_token = access_token if access_token is not None else Config.SHOPIFY_STOREFRONT_ACCESS_TOKEN
        self.api_versions = list(api_versions or Config.SHOPIFY_API_VERSIONS)
        self.timeout = timeout if timeout is not None else Config.SHOPIFY_REQUEST_TIMEOUT_SECONDS
        self.transport = transport

    def resolve_domain(self) -> str:
        """Validate credentials and return the normalized store domain"""
        if not self.store_domain or not self.access_token:
            missing = [
                name for name, value in (
                    ("SHOPIFY_STORE_DOMAIN", self.store_domain),
                    ("SHOPIFY_STOREFRONT_ACCESS_TOKEN", self.access_token),
                ) if not value
            ]
            raise ConfigurationError(f"Shopify credentials not configured: missing {', '.join(missing)}")
        return normalize_store_domain(self.store_domain)

    def endpoint(self, domain: str, version: str) -> str:
        return f"https://{domain}/api/{version}/graphql.json"

    def _http_client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self.transport)

    def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        version: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        POST a GraphQL document and return the parsed response body.

        Args:
            query: GraphQL document
            variables: Optional GraphQL variables
            version: API version, defaults to the newest configured one

        Returns:
            The full response body, including the ``data`` key

        Raises:
            ConfigurationError: If credentials or domain are invalid
            TransportError: On network failure or a non-JSON response
            ApiError: On a non-2xx status or a GraphQL error list
        """
        domain = self.resolve_domain()
        if not version and not self.api_versions:
            raise ConfigurationError("No Shopify API versions configured")
        version = version or self.api_versions[0]
        url = self.endpoint(domain, version)

        payload: Dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = variables
        headers = {
            "Content-Type": "application/json",
            ACCESS_TOKEN_HEADER: self.access_token,
        }

        try:
            with self._http_client() as client:
                response = client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {type(e).__name__}: {e}")

        content_type = response.headers.get("content-type", "")
        if "json" not in content_type.lower():
            raise TransportError(
                f"Unexpected content type {content_type or 'none'!r} from {url} "
                f"(HTTP {response.status_code})",
                hint=NON_JSON_HINT,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(f"Malformed JSON from {url}: {e}", hint=NON_JSON_HINT)
        if not isinstance(body, dict):
            raise TransportError(f"Unexpected response body from {url}", hint=NON_JSON_HINT)

        errors = _error_messages(body)
        if response.is_success and not errors:
            return body

        if errors:
            message = "; ".join(errors)
        else:
            message = f"HTTP {response.status_code} {response.reason_phrase}".strip()
        raise ApiError(message, errors=errors, status_code=response.status_code)

    def fetch_products(self, first: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Fetch raw product nodes, trying each API version newest first.

        Transport and API errors move on to the next version; configuration
        errors are raised immediately. When every version fails the last
        error is raised.
        """
        domain = self.resolve_domain()
        variables = {"first": first or Config.PRODUCTS_PAGE_SIZE}
        last_error: Optional[StorefrontException] = None

        for version in self.api_versions:
            try:
                body = self.execute(PRODUCTS_QUERY, variables, version=version)
            except (TransportError, ApiError) as e:
                logger.warning(f"Storefront API {version} failed for {domain}: {e}")
                last_error = e
                continue

            data = body.get("data") or {}
            products = data.get("products") or {}
            nodes = [
                edge["node"]
                for edge in products.get("edges") or []
                if isinstance(edge, dict) and isinstance(edge.get("node"), dict)
            ]
            logger.info(f"Fetched {len(nodes)} products from {domain} using API {version}")
            return nodes

        if last_error is None:
            raise ConfigurationError("No Shopify API versions configured")
        logger.error(f"All Storefront API versions failed for {domain}: {last_error}")
        raise last_error


def _error_messages(body: Any) -> List[str]:
    if not isinstance(body, dict):
        return []
    errors = body.get("errors")
    if not errors:
        return []
    if isinstance(errors, str):
        return [errors]
    messages = []
    for error in errors:
        if isinstance(error, dict):
            messages.append(str(error.get("message") or error))
        else:
            messages.append(str(error))
    return messages


# Global Storefront client instance
_storefront_client: Optional[StorefrontClient] = None


def get_storefront_client() -> StorefrontClient:
    """Get or create Storefront client instance (singleton)"""
    global _storefront_client
    if _storefront_client is None:
        _storefront_client = StorefrontClient()
    return _storefront_client
