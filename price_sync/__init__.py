"""Promotional Price Sync - Core Module"""

from typing import Dict, Any

__version__ = "1.0.0"

# Pipeline defaults, overridden by settings / environment
PRICE_SETTINGS: Dict[str, Any] = {
    'batch_size': 100,
    'max_degree_of_parallelism': 4,
    'max_retries': 3,
    'dedupe': False,
    'archive_container': 'price-archive',
    'topic_name': 'catalog-prices',
}

# Feed file names per promotion type
FEED_FILE_NAMES = {
    'special': 'SpecialPrices',
    'tier': 'TierPrices',
    'deal': 'DealPrices',
    'base': 'BasePrices',
}

# Constant values the downstream catalog feed expects
FEED_DEFAULTS = {
    'eligible_for_promo': 'no',
    'customer_group': 'ALL GROUPS',
    'value_type': 'Fixed',
    'deal_status': 0,
}

# Root category as named in the ERP, and the name shown in the catalog
ROOT_CATEGORY_SENTINEL = "Rockler Product Hierarchy"
ROOT_CATEGORY_DISPLAY = "Default Category"

# Backend discount method code for a flat discount with no value
FLAT_ZERO_METHOD = "flat-zero"

assert set(FEED_FILE_NAMES) == {'special', 'tier', 'deal', 'base'}, "Every promotion type needs a feed file name"
