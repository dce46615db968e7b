"""
Pydantic models for products, cart items, requests, and responses.

JSON field names are camelCase on the wire (``shopifyId``, ``variantId``,
``checkoutUrl``); Python attributes stay snake_case.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Money(CamelModel):
    """Price amount as reported by the Storefront API"""
    amount: str = Field("0", description="Decimal amount string")
    currency_code: str = Field("", description="ISO currency code")


class SelectedOption(CamelModel):
    name: str
    value: str


class Variant(CamelModel):
    """Product variant"""
    id: str = Field(..., description="Full remote identifier, used for checkout")
    short_id: str = Field(..., description="Last path segment of id, display only")
    title: str = ""
    price: Money = Field(default_factory=Money)
    available_for_sale: bool = False
    selected_options: List[SelectedOption] = Field(default_factory=list)


class Product(CamelModel):
    """Normalized catalog product"""
    id: str = Field(..., description="Stable catalog identifier")
    shopify_id: Optional[str] = Field(None, description="Remote global identifier")
    name: str
    price: str = Field(..., description="Display price, may carry a currency marker")
    image: str = ""
    images: List[str] = Field(default_factory=list)
    description: str = ""
    slug: str
    variants: List[Variant] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)
    size_chart: Optional[str] = Field(None, description="HTML or text size chart")


class CartItem(CamelModel):
    """Cart line held by the cart state manager"""
    id: str = Field(..., description="Locally synthesized item identifier")
    product_id: str
    variant_id: Optional[str] = Field(None, description="Remote variant id for checkout")
    name: str
    price: str
    image: str = ""
    size: Optional[str] = None
    quantity: int = Field(..., ge=1)


class CartItemRequest(CamelModel):
    """Request model for adding an item to a cart"""
    product_id: str = Field(..., min_length=1)
    name: str
    price: str
    image: str = ""
    size: Optional[str] = None
    variant_id: Optional[str] = None


class QuantityUpdateRequest(CamelModel):
    """Request model for setting an item's quantity"""
    quantity: int


class CartResponse(CamelModel):
    """Response model for cart retrieval"""
    cart_id: str
    items: List[CartItem] = Field(default_factory=list)
    total: Decimal = Decimal("0")
    item_count: int = 0


class CheckoutLineItem(CamelModel):
    """Variant and quantity pair sent to the checkout mutation"""
    variant_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


class CheckoutRequest(CamelModel):
    """Request model for checkout"""
    line_items: List[CheckoutLineItem] = Field(..., min_length=1)


class CheckoutResponse(CamelModel):
    """Response model for checkout"""
    checkout_url: str
