"""
Configuration management for the storefront application.
Loads settings from environment variables and AWS Secrets Manager.
"""
import os
import json
import logging
import boto3
from typing import List, Optional

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name) or default
    return [part.strip() for part in raw.split(",") if part.strip()]


class Config:
    """Application configuration"""

    # Application settings
    APP_PORT: int = int(os.getenv("APP_PORT", "8000"))
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "storefront")
    REGION: str = os.getenv("REGION", "ap-southeast-2")

    # Shopify Storefront API settings
    SHOPIFY_STORE_DOMAIN: Optional[str] = os.getenv("SHOPIFY_STORE_DOMAIN")
    SHOPIFY_STOREFRONT_ACCESS_TOKEN: Optional[str] = os.getenv("SHOPIFY_STOREFRONT_ACCESS_TOKEN")
    # Newest first
    SHOPIFY_API_VERSIONS: List[str] = _env_list(
        "SHOPIFY_API_VERSIONS", "2024-10,2024-07,2024-04,2024-01"
    )
    SHOPIFY_REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("SHOPIFY_REQUEST_TIMEOUT_SECONDS", "10"))

    # Catalog settings
    PRODUCTS_DEGRADE_TO_EMPTY: bool = _env_bool("PRODUCTS_DEGRADE_TO_EMPTY", False)
    PRODUCTS_PAGE_SIZE: int = int(os.getenv("PRODUCTS_PAGE_SIZE", "250"))

    # Cart settings
    CART_TTL_SECONDS: int = int(os.getenv("CART_TTL_SECONDS", str(1 * 24 * 60 * 60)))  # idle carts expire after 1 day

    @classmethod
    def is_storefront_configured(cls) -> bool:
        return bool(cls.SHOPIFY_STORE_DOMAIN and cls.SHOPIFY_STOREFRONT_ACCESS_TOKEN)

    @classmethod
    def load_shopify_secrets(cls) -> None:
        """Load Storefront access token from AWS Secrets Manager"""
        if cls.SHOPIFY_STOREFRONT_ACCESS_TOKEN:
            return  # Already loaded from environment

        secret_name = os.getenv("SHOPIFY_SECRET_NAME")
        if not secret_name:
            return

        try:
            client = boto3.client("secretsmanager", region_name=cls.REGION)
            response = client.get_secret_value(SecretId=secret_name)
            secret_data = json.loads(response["SecretString"])

            cls.SHOPIFY_STOREFRONT_ACCESS_TOKEN = secret_data.get("storefront_access_token")
            if "store_domain" in secret_data:
                cls.SHOPIFY_STORE_DOMAIN = secret_data["store_domain"]
        except Exception as e:
            logger.warning(f"Could not load Shopify secrets from Secrets Manager: {e}")
            # Remote calls will raise ConfigurationError


# Load secrets at module import
Config.load_shopify_secrets()
