"""
Checkout service for turning cart line items into a hosted checkout URL.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from storefront.cart_service import CartService
from storefront.exceptions import ApiError, ValidationError
from storefront.models import CheckoutLineItem
from storefront.storefront_client import StorefrontClient, get_storefront_client

logger = logging.getLogger(__name__)

CART_CREATE_MUTATION = """
mutation cartCreate($input: CartInput!) {
  cartCreate(input: $input) {
    cart {
      id
      checkoutUrl
    }
    userErrors {
      field
      message
    }
  }
}
"""


@dataclass(frozen=True)
class CheckoutStrategy:
    """Where one mutation shape keeps its user errors and checkout URL"""
    name: str
    payload_key: str
    user_errors_key: str
    resource_key: str
    url_key: str

    def interpret(self, data: Dict[str, Any]) -> Optional[str]:
        """
        Return the checkout URL from this strategy's payload.

        Returns None when the payload is absent or carries no URL.

        Raises:
            ApiError: If the payload reports user errors
        """
        payload = data.get(self.payload_key)
        if not isinstance(payload, dict):
            return None

        user_errors = payload.get(self.user_errors_key) or []
        if user_errors:
            messages = [
                str(error.get("message")) if isinstance(error, dict) else str(error)
                for error in user_errors
            ]
            logger.error(f"{self.name} user errors: {messages}")
            raise ApiError(messages[0] or f"Failed to create checkout via {self.name}", errors=messages)

        resource = payload.get(self.resource_key) or {}
        url = resource.get(self.url_key) if isinstance(resource, dict) else None
        return url or None


# Priority order: current cart API first, then the legacy checkout API
CHECKOUT_STRATEGIES: List[CheckoutStrategy] = [
    CheckoutStrategy(
        name="cartCreate",
        payload_key="cartCreate",
        user_errors_key="userErrors",
        resource_key="cart",
        url_key="checkoutUrl"
    ),
    CheckoutStrategy(
        name="checkoutCreate",
        payload_key="checkoutCreate",
        user_errors_key="checkoutUserErrors",
        resource_key="checkout",
        url_key="webUrl"
    ),
]


class CheckoutService:
    """Service for checkout operations"""

    def __init__(
        self,
        client: Optional[StorefrontClient] = None,
        strategies: Optional[Sequence[CheckoutStrategy]] = None
    ):
        self.client = client or get_storefront_client()
        self.strategies = list(strategies or CHECKOUT_STRATEGIES)

    def create_checkout(self, line_items: Sequence[CheckoutLineItem]) -> str:
        """
        Create a hosted checkout for the given line items.

        Args:
            line_items: Non-empty sequence of variant id and quantity pairs

        Returns:
            Checkout URL to redirect the shopper to

        Raises:
            ConfigurationError: If Storefront credentials are missing
            ValidationError: If line_items is empty
            ApiError: If the API reports errors or returns no URL
            TransportError: On network failure or a non-JSON response
        """
        self.client.resolve_domain()
        if not line_items:
            raise ValidationError("Cannot create checkout with empty cart")

        variables = {
            "input": {
                "lines": [
                    {"merchandiseId": item.variant_id, "quantity": item.quantity}
                    for item in line_items
                ]
            }
        }

        # Top-level GraphQL errors raise ApiError here
        body = self.client.execute(CART_CREATE_MUTATION, variables)
        data = body.get("data") or {}

        for strategy in self.strategies:
            checkout_url = strategy.interpret(data)
            if checkout_url:
                logger.info(f"Checkout created via {strategy.name} for {len(line_items)} line items")
                return checkout_url

        raise ApiError("No checkout URL returned")

    def checkout_cart(self, cart: CartService) -> str:
        """
        Create a checkout from a cart and remove the checked-out items on success.

        The cart is left untouched when checkout fails. Items added while the
        request is in flight stay in the cart.

        Raises:
            ValidationError: If the cart is empty or holds items without a variant
        """
        items = cart.get_items()
        if not items:
            raise ValidationError("Cannot create checkout with empty cart")

        missing = [item.name for item in items if not item.variant_id]
        if missing:
            raise ValidationError(
                f"Items cannot be checked out without a product variant: {', '.join(missing)}"
            )

        checkout_url = self.create_checkout([
            CheckoutLineItem(variant_id=item.variant_id, quantity=item.quantity)
            for item in items
        ])
        cart.remove_items(items)
        return checkout_url
