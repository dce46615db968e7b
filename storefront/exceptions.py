"""
Custom exceptions for the storefront application.
"""
from typing import List, Optional


class StorefrontException(Exception):
    """Base exception for storefront operations"""
    pass


class ConfigurationError(StorefrontException):
    """Raised when deployment settings are missing or malformed"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TransportError(StorefrontException):
    """Raised on network failures or non-JSON responses from the Storefront API"""
    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(f"{message} ({hint})" if hint else message)


class ApiError(StorefrontException):
    """Raised when the Storefront API reports GraphQL or business errors"""
    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        status_code: Optional[int] = None
    ):
        self.message = message
        self.errors = errors or []
        self.status_code = status_code
        super().__init__(message)


class ValidationError(StorefrontException):
    """Raised when caller-supplied input is malformed"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ProductNotFoundError(StorefrontException):
    """Raised when no product matches a slug"""
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Product not found: {slug}")
