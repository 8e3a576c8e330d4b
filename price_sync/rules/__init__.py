"""Discount rule grouping and scope expansion."""

from .discount_grouper import DiscountRuleGrouper, OfferGroup
from .scope_expander import ScopeExpander, UomPolicy

__all__ = [
    'DiscountRuleGrouper',
    'OfferGroup',
    'ScopeExpander',
    'UomPolicy'
]
