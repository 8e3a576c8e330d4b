"""Special Price - simple discounts

Percent off, amount off or a flat offer price for each covered product,
valid between the rule's ValidFrom and ValidTo dates.
"""

from decimal import Decimal
from typing import Any

from ..core.models import DiscountRule, PricedProduct, SpecialPriceRecord
from ..rules.scope_expander import UomPolicy
from .base import PriceCalculator, percent_or_amount_price


class SpecialPriceCalculator(PriceCalculator):
    """Simple discount pricing"""

    uom_policy = UomPolicy.CASE_INSENSITIVE

    def skips(self, rule: DiscountRule) -> bool:
        return rule.is_inert

    def special_price(self, base_price: Decimal, rule: DiscountRule) -> Decimal:
        return percent_or_amount_price(base_price, rule, rule.discount_amount)

    def calculate(self, rule: DiscountRule, product: PricedProduct, params: Any) -> SpecialPriceRecord:
        price = self.special_price(product.base_price, rule)
        return SpecialPriceRecord(
            sku=product.sku,
            special_price=price,
            special_price_feed=price,
            valid_from=rule.valid_from,
            valid_to=rule.valid_to,
            store_view_code=params.store_view_code
        )
