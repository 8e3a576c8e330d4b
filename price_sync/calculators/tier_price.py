"""Tier Price - quantity discounts

Same percent/amount/flat logic as special prices, except that an amount
discount is spread over the rule's lowest quantity: the amount is what the
customer saves on the whole tier, the feed wants the unit price.
"""

from decimal import Decimal, ROUND_HALF_EVEN
from typing import Any

from ..core.exceptions import PriceCalculationError
from ..core.models import DiscountRule, PricedProduct, TierPriceRecord
from ..rules.scope_expander import UomPolicy
from .base import PriceCalculator, percent_or_amount_price


class TierPriceCalculator(PriceCalculator):
    """Quantity discount pricing"""

    # Tier rules compare units of measure verbatim
    uom_policy = UomPolicy.EXACT

    QUANTITY_PLACES = Decimal('0.01')

    def tier_price(self, base_price: Decimal, rule: DiscountRule, sku: str = "") -> Decimal:
        if rule.discount <= 0 and rule.discount_amount > 0 and rule.lowest_qty == 0:
            raise PriceCalculationError(
                f"Offer {rule.offer_id} has an amount discount with a lowest quantity of zero",
                offer_id=rule.offer_id,
                sku=sku
            )

        amount_off = Decimal('0')
        if rule.discount_amount > 0 and rule.lowest_qty != 0:
            amount_off = rule.discount_amount / rule.lowest_qty
        return percent_or_amount_price(base_price, rule, amount_off)

    def format_quantity(self, lowest_qty: Decimal) -> str:
        """Lowest quantity rounded to two places, keeping a shorter scale as is"""
        if lowest_qty.as_tuple().exponent < -2:
            lowest_qty = lowest_qty.quantize(self.QUANTITY_PLACES, rounding=ROUND_HALF_EVEN)
        return format(lowest_qty, 'f')

    def calculate(self, rule: DiscountRule, product: PricedProduct, params: Any) -> TierPriceRecord:
        return TierPriceRecord(
            sku=product.sku,
            quantity=self.format_quantity(rule.lowest_qty),
            tier_price=self.tier_price(product.base_price, rule, product.sku),
            website=params.website
        )
