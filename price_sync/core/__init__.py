"""Core data models and errors"""

from .models import (
    Category,
    ProductReference,
    RawProductPrice,
    PricedProduct,
    DiscountRule,
    LineType,
    PromotionType,
    SpecialPriceRecord,
    TierPriceRecord,
    DealPriceRecord,
    BasePriceRecord,
    StageMessage,
    records_to_dicts
)
from .exceptions import (
    PriceSyncError,
    CategoryCycleError,
    PriceCalculationError,
    BackendError,
    TransmissionError,
    ConfigurationError
)

__all__ = [
    'Category',
    'ProductReference',
    'RawProductPrice',
    'PricedProduct',
    'DiscountRule',
    'LineType',
    'PromotionType',
    'SpecialPriceRecord',
    'TierPriceRecord',
    'DealPriceRecord',
    'BasePriceRecord',
    'StageMessage',
    'records_to_dicts',
    'PriceSyncError',
    'CategoryCycleError',
    'PriceCalculationError',
    'BackendError',
    'TransmissionError',
    'ConfigurationError'
]
