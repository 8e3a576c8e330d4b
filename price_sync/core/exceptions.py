"""Shared exceptions for the price sync system."""


class PriceSyncError(Exception):
    """Base class for every error raised by price_sync."""
    pass


class CategoryCycleError(PriceSyncError):
    """Raised when a category hierarchy walk revisits a category."""

    def __init__(self, message: str, category_id: int, path: list):
        super().__init__(message)
        self.category_id = category_id
        self.path = path


class PriceCalculationError(PriceSyncError):
    """Raised when a discount rule cannot be turned into a price."""

    def __init__(self, message: str, offer_id: str = "", sku: str = ""):
        super().__init__(message)
        self.offer_id = offer_id
        self.sku = sku


class BackendError(PriceSyncError):
    """Raised when the retail backend request fails."""

    def __init__(self, message: str, status_code=None, url: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class TransmissionError(PriceSyncError):
    """Raised when a price feed cannot be archived or published."""
    pass


class ConfigurationError(PriceSyncError):
    """Raised for missing or invalid settings."""
    pass
