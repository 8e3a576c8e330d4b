"""Scope expansion: from a discount rule's target to the priced products it covers.

A rule either names one product (or one variant of it) or a category. A
category rule covers every product of that category and of all its
descendants, except subtrees rooted at an excluded category and products or
variants the offer excludes by id. Unit of measure compatibility is checked
for every candidate.
"""

from enum import Enum
from typing import Dict, List, Iterable, Optional
import logging

from ..catalog.category_index import CategoryIndex
from ..core.exceptions import CategoryCycleError
from ..core.models import DiscountRule, PricedProduct
from .discount_grouper import OfferGroup

logger = logging.getLogger(__name__)


class UomPolicy(Enum):
    """How a rule's unit of measure is compared with a product's"""
    CASE_INSENSITIVE = "case_insensitive"
    EXACT = "exact"

    def matches(self, rule_uom: str, product_uom: str) -> bool:
        # An empty rule UOM applies to every unit
        if rule_uom == "":
            return True
        if self == UomPolicy.CASE_INSENSITIVE:
            return rule_uom.lower() == (product_uom or "").lower()
        return rule_uom == product_uom


class ScopeExpander:
    """Resolves Include rules against one catalog snapshot"""

    def __init__(self, catalog: Iterable[PricedProduct], category_index: CategoryIndex,
                 uom_policy: UomPolicy = UomPolicy.CASE_INSENSITIVE):
        self.category_index = category_index
        self.uom_policy = uom_policy

        self._by_record_id: Dict[int, List[PricedProduct]] = {}
        self._by_category: Dict[int, List[PricedProduct]] = {}
        for product in catalog:
            self._by_record_id.setdefault(product.record_id, []).append(product)
            self._by_category.setdefault(product.category_id, []).append(product)

    def expand(self, rule: DiscountRule, offer: OfferGroup) -> List[PricedProduct]:
        """Eligible products for one Include rule of an offer, in emission order"""
        if not rule.is_include:
            return []

        if rule.targets_product:
            product = self._find_target_product(rule)
            return [product] if product else []

        if rule.targets_category:
            return self._expand_category(rule, offer)

        logger.debug(f"Rule of offer {rule.offer_id} targets neither a product nor a category")
        return []

    def _find_target_product(self, rule: DiscountRule) -> Optional[PricedProduct]:
        record_id = rule.variant if rule.variant > 0 else rule.product

        for product in self._by_record_id.get(record_id, ()):
            if self.uom_policy.matches(rule.uom, product.uom):
                return product

        logger.debug(f"Offer {rule.offer_id}: no priced product {record_id} for UOM '{rule.uom}'")
        return None

    def _expand_category(self, rule: DiscountRule, offer: OfferGroup) -> List[PricedProduct]:
        if rule.category not in self.category_index:
            logger.debug(f"Offer {rule.offer_id}: category {rule.category} not found, rule skipped")
            return []

        eligible = []
        visited = set()
        # Depth-first, children pushed in reverse so they pop in snapshot order
        stack = [(rule.category, [rule.category])]

        while stack:
            category_id, path = stack.pop()
            if category_id in visited:
                raise CategoryCycleError(
                    f"Category {category_id} reached twice while expanding offer {rule.offer_id}",
                    category_id=category_id,
                    path=path
                )
            visited.add(category_id)

            eligible.extend(self._category_products(category_id, rule, offer))

            children = [
                child for child in self.category_index.children_of(category_id)
                if not offer.is_category_excluded(child)
            ]
            for child in reversed(children):
                stack.append((child, path + [child]))

        return eligible

    def _category_products(self, category_id: int, rule: DiscountRule,
                           offer: OfferGroup) -> List[PricedProduct]:
        return [
            product for product in self._by_category.get(category_id, ())
            if not offer.is_product_excluded(product.record_id)
            and self.uom_policy.matches(rule.uom, product.uom)
        ]
