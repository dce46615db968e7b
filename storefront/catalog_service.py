"""
Catalog service: normalized product listing and per-slug lookup.
"""
import logging
from typing import List, Optional, Sequence

from storefront.config import Config
from storefront.data import LOCAL_PRODUCTS
from storefront.exceptions import ApiError, ProductNotFoundError, TransportError
from storefront.models import Product
from storefront.normalizer import normalize_product
from storefront.storefront_client import StorefrontClient, get_storefront_client

logger = logging.getLogger(__name__)


class CatalogService:
    """Service for catalog operations"""

    def __init__(
        self,
        client: Optional[StorefrontClient] = None,
        degrade_to_empty: Optional[bool] = None,
        local_products: Optional[Sequence[Product]] = None
    ):
        self.client = client or get_storefront_client()
        self.degrade_to_empty = (
            Config.PRODUCTS_DEGRADE_TO_EMPTY if degrade_to_empty is None else degrade_to_empty
        )
        self.local_products = list(LOCAL_PRODUCTS if local_products is None else local_products)

    def list_products(self) -> List[Product]:
        """
        Fetch and normalize the remote catalog.

        Configuration errors always propagate. Transport and API errors
        propagate unless degrade_to_empty is set, in which case an empty
        catalog is returned.
        """
        try:
            raw_products = self.client.fetch_products()
        except (TransportError, ApiError) as e:
            if not self.degrade_to_empty:
                raise
            logger.warning(f"Serving empty catalog after Storefront failure: {e}")
            return []

        products = [normalize_product(raw) for raw in raw_products]
        if not products:
            logger.warning("No products returned from Shopify. Check store configuration and credentials.")
        return products

    def get_product_by_slug(self, slug: str, products: Optional[Sequence[Product]] = None) -> Product:
        """
        Look up a product by slug, in the local catalog by default.

        Raises:
            ProductNotFoundError: If no product has the slug
        """
        candidates = self.local_products if products is None else products
        for product in candidates:
            if product.slug == slug:
                return product
        raise ProductNotFoundError(slug)
