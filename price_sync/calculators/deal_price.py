"""Deal Price - mix and match bundles

Every covered product takes the offer-level price. The base price rides
along so the aggregator can work out the bundle savings.
"""

from typing import Any

from ..core.models import DiscountRule, PricedProduct, DealPriceRecord
from ..rules.scope_expander import UomPolicy
from .base import PriceCalculator


class DealPriceCalculator(PriceCalculator):
    """Mix and match deal pricing"""

    uom_policy = UomPolicy.CASE_INSENSITIVE

    def calculate(self, rule: DiscountRule, product: PricedProduct, params: Any) -> DealPriceRecord:
        return DealPriceRecord(
            offer_id=rule.offer_id,
            skus=product.sku,
            base_price=product.base_price,
            deal_price=rule.offer_price,
            name=rule.name,
            description=rule.description,
            website=params.website
        )
