"""
FastAPI application for the Shopify-backed storefront.
"""
import logging
import time
from typing import List

from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.config import Config
from storefront.models import (
    CartItemRequest,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    Product,
    QuantityUpdateRequest
)
from storefront.cart_service import CartRegistry, CartService
from storefront.catalog_service import CatalogService
from storefront.checkout_service import CheckoutService
from storefront.exceptions import (
    ApiError,
    ConfigurationError,
    ProductNotFoundError,
    TransportError,
    ValidationError
)
from storefront.middleware import RequestLoggingMiddleware

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Storefront API",
    description="Shopify Storefront catalog, cart and checkout service",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

# Initialize services
catalog_service = CatalogService()
checkout_service = CheckoutService()
cart_registry = CartRegistry()


def _cart_id(cart_id: str) -> str:
    if not cart_id or not cart_id.strip():
        raise ValidationError("Cart ID is required")
    return cart_id.strip()


def _cart_response(cart_id: str, cart: CartService) -> CartResponse:
    snapshot = cart.snapshot()
    return CartResponse(
        cart_id=cart_id,
        items=snapshot.items,
        total=snapshot.total,
        item_count=snapshot.item_count
    )


@app.get("/health")
def health_check():
    """Liveness check; reports whether Storefront credentials are configured"""
    return {
        "status": "healthy",
        "service": "storefront-api",
        "storefront": {"configured": Config.is_storefront_configured()},
        "timestamp": time.time()
    }


# Catalog endpoints
@app.get("/api/products", response_model=List[Product])
def list_products():
    """List the normalized Shopify catalog"""
    products = catalog_service.list_products()
    logger.info(f"Serving {len(products)} products")
    return products


@app.get("/products/{slug}", response_model=Product)
def get_product(slug: str):
    """Look up a product of the local catalog by slug"""
    return catalog_service.get_product_by_slug(slug)


# Checkout endpoint
@app.post("/api/checkout", response_model=CheckoutResponse)
def create_checkout(request: CheckoutRequest):
    """Create a Shopify checkout for the given line items"""
    checkout_url = checkout_service.create_checkout(request.line_items)
    return CheckoutResponse(checkout_url=checkout_url)


# Cart endpoints
@app.get("/cart", response_model=CartResponse)
def get_cart(
    cart_id: str = Header(..., alias="X-Cart-ID", description="Cart identifier")
):
    """Get cart contents. Unknown carts are returned empty."""
    cart_id = _cart_id(cart_id)
    cart = cart_registry.get(cart_id) or CartService()
    return _cart_response(cart_id, cart)


@app.post("/cart/items", response_model=CartResponse)
def add_cart_item(
    request: CartItemRequest,
    cart_id: str = Header(..., alias="X-Cart-ID", description="Cart identifier")
):
    """Add one unit of a product/size to the cart"""
    cart_id = _cart_id(cart_id)
    cart = cart_registry.get_or_create(cart_id)
    cart.add_item(
        product_id=request.product_id,
        name=request.name,
        price=request.price,
        image=request.image,
        size=request.size,
        variant_id=request.variant_id
    )
    return _cart_response(cart_id, cart)


@app.patch("/cart/items/{item_id}", response_model=CartResponse)
def update_cart_item(
    item_id: str,
    request: QuantityUpdateRequest,
    cart_id: str = Header(..., alias="X-Cart-ID", description="Cart identifier")
):
    """Set an item's quantity; zero or less removes it"""
    cart_id = _cart_id(cart_id)
    cart = cart_registry.get(cart_id) or CartService()
    cart.update_quantity(item_id, request.quantity)
    return _cart_response(cart_id, cart)


@app.delete("/cart/items/{item_id}", response_model=CartResponse)
def remove_cart_item(
    item_id: str,
    cart_id: str = Header(..., alias="X-Cart-ID", description="Cart identifier")
):
    """Remove an item from the cart"""
    cart_id = _cart_id(cart_id)
    cart = cart_registry.get(cart_id) or CartService()
    cart.remove_item(item_id)
    return _cart_response(cart_id, cart)


@app.delete("/cart", response_model=CartResponse)
def clear_cart(
    cart_id: str = Header(..., alias="X-Cart-ID", description="Cart identifier")
):
    """Empty the cart"""
    cart_id = _cart_id(cart_id)
    cart = cart_registry.get(cart_id) or CartService()
    cart.clear()
    cart_registry.discard_if_empty(cart_id)
    return _cart_response(cart_id, cart)


@app.post("/cart/checkout", response_model=CheckoutResponse)
def checkout_cart(
    cart_id: str = Header(..., alias="X-Cart-ID", description="Cart identifier")
):
    """
    Create a Shopify checkout from the cart.
    Checked-out items leave the cart only when checkout succeeds.
    """
    cart_id = _cart_id(cart_id)
    cart = cart_registry.get(cart_id)
    if cart is None:
        raise ValidationError("Cannot create checkout with empty cart")
    checkout_url = checkout_service.checkout_cart(cart)
    cart_registry.discard_if_empty(cart_id)
    return CheckoutResponse(checkout_url=checkout_url)


# Error handlers
@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ())[1:]) or 'body'}: {error.get('msg')}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid request: {details}"}
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ProductNotFoundError)
async def product_not_found_handler(request: Request, exc: ProductNotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Storefront misconfigured: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(TransportError)
@app.exception_handler(ApiError)
async def upstream_error_handler(request: Request, exc: Exception):
    logger.error(f"Storefront API failure on {request.url.path}: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


# Generic exception handler for unhandled errors
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=Config.APP_PORT)
