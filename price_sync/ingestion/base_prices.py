"""Base price ingestion

Looks up the active price of every catalog product in fixed-size batches
running in parallel, and turns the answers into PricedProduct entries.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from ..config import PriceParams
from ..core.models import PricedProduct, ProductReference, RawProductPrice

logger = logging.getLogger(__name__)

PRICE_PLACES = Decimal('0.01')


def select_base_price(raw_price: RawProductPrice) -> Decimal:
    """Negotiated trade agreement price when positive, else the list price"""
    price = raw_price.trade_agreement_price or Decimal('0')
    if price <= 0:
        price = raw_price.base_price or Decimal('0')
    return price.quantize(PRICE_PLACES, rounding=ROUND_HALF_EVEN)


@dataclass
class IngestionResult:
    products: List[PricedProduct] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)
    missing_ids: List[int] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors


class BasePriceFetcher:
    """Batched, parallel base price lookup with a bounded retry for gaps"""

    def __init__(self, client, params: Optional[PriceParams] = None):
        self.client = client
        self.params = params or PriceParams()

    def fetch(self, products: Sequence[ProductReference]) -> IngestionResult:
        products = list(products)
        batch_size = self.params.batch_size
        batches = [products[i:i + batch_size] for i in range(0, len(products), batch_size)]

        result = IngestionResult()
        if not batches:
            return result

        logger.info(f"Fetching base prices for {len(products)} products in {len(batches)} batches")

        with ThreadPoolExecutor(max_workers=self.params.max_degree_of_parallelism) as executor:
            futures = [executor.submit(self._price_batch, batch) for batch in batches]

            # Collected in batch order so reruns produce the same catalog order
            for number, future in enumerate(futures, start=1):
                try:
                    priced, missing = future.result()
                except Exception as e:
                    logger.error(f"Base price batch {number} failed: {e}")
                    result.errors.append(e)
                    continue
                result.products.extend(priced)
                result.missing_ids.extend(missing)

        if result.missing_ids:
            logger.warning(f"No base price found for {len(result.missing_ids)} products")
        logger.info(f"Total {len(result.products)} products priced, {len(result.errors)} batches failed")

        return result

    def _price_batch(self, batch: List[ProductReference]) -> Tuple[List[PricedProduct], List[int]]:
        prices, missing = self.fetch_batch_prices([product.record_id for product in batch])

        priced = []
        for product in batch:
            raw_price = prices.get(product.record_id)
            if raw_price is None:
                continue
            priced.append(PricedProduct(
                record_id=product.record_id,
                sku=product.sku,
                base_price=select_base_price(raw_price),
                uom=product.uom,
                category_id=product.category_id
            ))
        return priced, missing

    def fetch_batch_prices(self, product_ids: List[int]) -> Tuple[Dict[int, RawProductPrice], List[int]]:
        """Prices by product id, plus the ids still unpriced after retrying.

        Ids missing from an answer are asked for again, at most
        ``max_retries`` times. An empty answer ends the lookup early.
        """
        prices: Dict[int, RawProductPrice] = {}
        pending = list(product_ids)
        retries = 0

        while pending:
            answer = self.client.fetch_prices(pending, self.params.from_date)
            if not answer:
                break

            requested = set(pending)
            for raw_price in answer:
                if raw_price.product_id in requested and raw_price.product_id not in prices:
                    prices[raw_price.product_id] = raw_price

            pending = [pid for pid in pending if pid not in prices]
            if not pending or retries >= self.params.max_retries:
                break
            retries += 1
            logger.debug(f"Retrying base prices for {len(pending)} products (retry {retries})")

        return prices, pending
