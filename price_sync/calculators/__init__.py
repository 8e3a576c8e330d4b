"""Promotional Price Calculators"""

from ..core.models import PromotionType
from .base import PriceCalculator
from .special_price import SpecialPriceCalculator
from .tier_price import TierPriceCalculator
from .deal_price import DealPriceCalculator

CALCULATORS = {
    PromotionType.SPECIAL: SpecialPriceCalculator,
    PromotionType.TIER: TierPriceCalculator,
    PromotionType.DEAL: DealPriceCalculator,
}


def get_calculator(promotion_type: PromotionType) -> PriceCalculator:
    """Calculator for a discount-based promotion type"""
    promotion_type = PromotionType.parse(promotion_type)
    if promotion_type not in CALCULATORS:
        raise ValueError(f"No discount calculator for {promotion_type.value} prices")
    return CALCULATORS[promotion_type]()


__all__ = [
    'PriceCalculator',
    'SpecialPriceCalculator',
    'TierPriceCalculator',
    'DealPriceCalculator',
    'CALCULATORS',
    'get_calculator'
]
