"""Promotional Price Resolution

Coordinates category indexing, offer grouping, scope expansion, price
calculation and aggregation for one promotion type per call. Pure over its
inputs: no I/O, nothing kept between calls.
"""

from typing import Dict, List, Iterable, Optional, Union
import logging

from .aggregator import merge_deal_prices, build_base_prices
from .calculators import get_calculator, PriceCalculator
from .catalog.category_index import CategoryIndex
from .config import PriceParams
from .core.models import Category, DiscountRule, PricedProduct, PromotionType
from .rules.discount_grouper import DiscountRuleGrouper, OfferGroup
from .rules.scope_expander import ScopeExpander

logger = logging.getLogger(__name__)


class PromotionResolver:
    """Resolves discount rules into the price records of the catalog feed"""

    def __init__(self, params: Optional[PriceParams] = None):
        self.params = params or PriceParams()
        self.grouper = DiscountRuleGrouper()

    def resolve(self,
                catalog: Iterable[PricedProduct],
                categories: Union[CategoryIndex, Iterable[Category]],
                rules: Iterable[DiscountRule],
                promotion_type: Optional[PromotionType] = None) -> List:
        """Resolved price records for one promotion type.

        ``promotion_type`` defaults to the one in the run params. The base
        type ignores rules and categories and returns the base price feed.
        """
        promotion_type = PromotionType.parse(promotion_type or self.params.promotion_type)
        catalog = list(catalog)

        if promotion_type == PromotionType.BASE:
            return build_base_prices(catalog, self.params.store_view_code)

        rules = list(rules)
        if not rules:
            logger.info(f"No {promotion_type.value} discounts found, nothing to resolve.")
            return []

        logger.info(f"Total {len(rules)} {promotion_type.value} discounts found.")

        category_index = categories if isinstance(categories, CategoryIndex) else CategoryIndex(categories)
        calculator = get_calculator(promotion_type)
        expander = ScopeExpander(catalog, category_index, calculator.uom_policy)

        rows = []
        for offer in self.grouper.group(rules):
            rows.extend(self._resolve_offer(offer, expander, calculator))

        logger.info(f"Total {len(rows)} {promotion_type.value} prices found.")

        if promotion_type == PromotionType.DEAL:
            rows = merge_deal_prices(rows)

        return rows

    def resolve_special(self, catalog, categories, rules) -> List:
        return self.resolve(catalog, categories, rules, PromotionType.SPECIAL)

    def resolve_tier(self, catalog, categories, rules) -> List:
        return self.resolve(catalog, categories, rules, PromotionType.TIER)

    def resolve_deal(self, catalog, categories, rules) -> List:
        return self.resolve(catalog, categories, rules, PromotionType.DEAL)

    def _resolve_offer(self, offer: OfferGroup, expander: ScopeExpander,
                       calculator: PriceCalculator) -> List:
        rows = []
        emitted: Dict[int, int] = {}

        for rule in offer.include_rules:
            if calculator.skips(rule):
                continue

            for product in expander.expand(rule, offer):
                emitted[product.record_id] = emitted.get(product.record_id, 0) + 1
                # Overlapping Include rules cover a product more than once
                if self.params.dedupe and emitted[product.record_id] > 1:
                    continue
                rows.append(calculator.calculate(rule, product, self.params))

        duplicates = sum(count - 1 for count in emitted.values() if count > 1)
        if duplicates:
            action = "dropped" if self.params.dedupe else "kept"
            logger.warning(f"Offer {offer.offer_id} covers {duplicates} product(s) more than once; duplicates {action}")

        return rows
