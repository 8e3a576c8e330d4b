"""Shared pieces of the promotional price calculators."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any

from ..core.models import DiscountRule, PricedProduct
from ..rules.scope_expander import UomPolicy


class PriceCalculator(ABC):
    """Turns a (rule, product) pair into one resolved price record.

    Calculators are stateless; ``params`` carries the store scope fields
    copied onto each record.
    """

    uom_policy = UomPolicy.CASE_INSENSITIVE

    def skips(self, rule: DiscountRule) -> bool:
        """Rules dropped before their scope is expanded"""
        return False

    @abstractmethod
    def calculate(self, rule: DiscountRule, product: PricedProduct, params: Any):
        pass


def percent_or_amount_price(base_price: Decimal, rule: DiscountRule,
                            amount_off: Decimal) -> Decimal:
    """Percent discount first, then amount off, else the flat offer price"""
    if rule.discount > 0:
        return base_price - (rule.discount / Decimal('100')) * base_price
    if rule.discount_amount > 0:
        return base_price - amount_off
    return rule.offer_price
