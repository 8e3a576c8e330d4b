"""Catalog snapshots and the category index"""

from .category_index import CategoryIndex
from .snapshots import load_categories, load_catalog, load_discount_rules

__all__ = [
    'CategoryIndex',
    'load_categories',
    'load_catalog',
    'load_discount_rules'
]
