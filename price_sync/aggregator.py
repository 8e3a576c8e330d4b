"""Type-specific post-processing of resolved price rows."""

from decimal import Decimal
from typing import Dict, List, Iterable
import logging

from .core.models import DealPriceRecord, BasePriceRecord, PricedProduct

logger = logging.getLogger(__name__)


def merge_deal_prices(deal_rows: Iterable[DealPriceRecord]) -> List[DealPriceRecord]:
    """Collapse per-product deal rows into one row per offer.

    Skus are comma-joined in encounter order, duplicates included. The deal
    price comes from the first row of the offer and the discount is the
    summed base price of every row minus that single deal price.
    """
    by_offer: Dict[str, List[DealPriceRecord]] = {}
    for row in deal_rows:
        by_offer.setdefault(row.offer_id, []).append(row)

    merged = []
    for offer_id, rows in by_offer.items():
        first = rows[0]
        total_base = sum((row.base_price for row in rows), Decimal('0'))
        merged.append(DealPriceRecord(
            offer_id=offer_id,
            skus=",".join(row.skus for row in rows),
            base_price=total_base,
            deal_price=first.deal_price,
            discount=total_base - first.deal_price,
            name=first.name,
            description=first.description,
            website=first.website,
            status=first.status
        ))

    logger.info(f"Total {len(merged)} deal prices found after grouping.")
    return merged


def build_base_prices(products: Iterable[PricedProduct], store_view_code: str = "") -> List[BasePriceRecord]:
    """Base price feed, one row per distinct (sku, base price)"""
    seen = {}
    total = 0
    for product in products:
        total += 1
        key = (product.sku, product.base_price)
        if key in seen:
            continue
        seen[key] = BasePriceRecord(
            sku=product.sku,
            base_price=product.base_price,
            store_view_code=store_view_code,
            uom=product.uom
        )

    logger.info(f"Total base prices {total}, {len(seen)} after grouping by SKU and price.")
    return list(seen.values())
