"""
Locally authored demo catalog served by the per-slug product lookup.
"""
from typing import List

from storefront.models import Product

LOCAL_PRODUCTS: List[Product] = [
    Product(
        id="1",
        name="Bella Skirt",
        price="90 USD",
        image="/BellaSkirt.png",
        images=["/BellaSkirt.png"],
        description="A beautiful flowing skirt perfect for any occasion",
        slug="bella-skirt"
    ),
    Product(
        id="2",
        name="Lace Headband",
        price="25 USD",
        image="/LaceHeadband.png",
        images=["/LaceHeadband.png"],
        description="Delicate lace headband for an elegant touch",
        slug="lace-headband"
    ),
    Product(
        id="3",
        name="Perla Dress",
        price="150 USD",
        image="/PerlaDress.png",
        images=["/PerlaDress.png"],
        description="Stunning pearl-inspired dress for special moments",
        slug="perla-dress"
    ),
]
