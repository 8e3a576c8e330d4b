"""Groups raw discount rules into offers with their exclusion sets."""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List
import logging

from ..core.models import DiscountRule

logger = logging.getLogger(__name__)


@dataclass
class OfferGroup:
    """All rules of one offer plus the scope its Exclude lines remove.

    The exclusion sets are shared by every Include rule of the offer.
    """
    offer_id: str
    rules: List[DiscountRule] = field(default_factory=list)
    excluded_categories: FrozenSet[int] = frozenset()
    excluded_products: FrozenSet[int] = frozenset()
    excluded_variants: FrozenSet[int] = frozenset()

    @property
    def include_rules(self) -> List[DiscountRule]:
        return [rule for rule in self.rules if rule.is_include]

    def is_product_excluded(self, record_id: int) -> bool:
        return record_id in self.excluded_products or record_id in self.excluded_variants

    def is_category_excluded(self, category_id: int) -> bool:
        return category_id in self.excluded_categories


class DiscountRuleGrouper:
    """Partitions one promotion type's rules per OfferId"""

    def group(self, rules: Iterable[DiscountRule]) -> List[OfferGroup]:
        """Offer groups in first-seen order, rules kept in input order"""
        by_offer: Dict[str, List[DiscountRule]] = {}
        for rule in rules:
            by_offer.setdefault(rule.offer_id, []).append(rule)

        groups = [self._build_group(offer_id, offer_rules) for offer_id, offer_rules in by_offer.items()]

        logger.debug(f"Grouped discount rules into {len(groups)} offers")
        return groups

    def _build_group(self, offer_id: str, rules: List[DiscountRule]) -> OfferGroup:
        excluded_categories = frozenset(
            rule.category for rule in rules
            if rule.is_exclude and rule.category > 0 and rule.product == 0
        )
        excluded_products = frozenset(
            rule.product for rule in rules
            if rule.is_exclude and rule.product > 0 and rule.variant == 0
        )
        excluded_variants = frozenset(
            rule.variant for rule in rules
            if rule.is_exclude and rule.product > 0 and rule.variant > 0
        )

        return OfferGroup(
            offer_id=offer_id,
            rules=list(rules),
            excluded_categories=excluded_categories,
            excluded_products=excluded_products,
            excluded_variants=excluded_variants
        )
