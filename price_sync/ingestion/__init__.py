"""Base price ingestion from the retail backend"""

from .base_prices import BasePriceFetcher, IngestionResult, select_base_price

__all__ = [
    'BasePriceFetcher',
    'IngestionResult',
    'select_base_price'
]
