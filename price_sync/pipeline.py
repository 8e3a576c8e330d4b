"""Price Sync Pipeline

One run for one promotion type: list the catalog, ingest base prices,
resolve the promotional prices and hand the feed to the transmitter.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional
import logging

from .config import PriceParams
from .core.models import PromotionType
from .ingestion.base_prices import BasePriceFetcher, IngestionResult
from .orchestrator import PromotionResolver
from .transport.publisher import PriceTransmitter, TransmissionOutcome
from .utils.reporting import ResolutionReport
from .utils.validation import RuleValidator

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    promotion_type: PromotionType
    records: List[Any] = field(default_factory=list)
    ingestion: Optional[IngestionResult] = None
    outcome: Optional[TransmissionOutcome] = None

    @property
    def transmitted(self) -> bool:
        return self.outcome is not None


class PriceSyncPipeline:
    """Runs fetch -> resolve -> transmit against the given collaborators"""

    def __init__(self, client, transmitter: PriceTransmitter, params: PriceParams):
        self.client = client
        self.transmitter = transmitter
        self.params = params
        self.resolver = PromotionResolver(params)
        self.validator = RuleValidator()

    def run(self) -> PipelineResult:
        started_at = datetime.now()
        promotion_type = self.params.promotion_type
        store = self.params.operating_unit_number
        result = PipelineResult(promotion_type=promotion_type)

        logger.info(f"Fetching products of store {store}...")
        references = self.client.fetch_catalog(store)

        logger.info(f"Fetching base prices of store {store}...")
        result.ingestion = BasePriceFetcher(self.client, self.params).fetch(references)
        priced = result.ingestion.products

        if not priced:
            logger.warning(f"No priced products for store {store}, nothing to transmit.")
            return result

        self.validator.find_duplicate_record_ids(priced)

        if promotion_type == PromotionType.BASE:
            result.records = self.resolver.resolve(priced, [], [], PromotionType.BASE)
        else:
            logger.info(f"Fetching categories of store {store}...")
            categories = self.client.fetch_categories(store)

            logger.info(f"Fetching {promotion_type.value} discounts of store {store}...")
            rules = self.client.fetch_discount_rules(promotion_type, store)
            if not rules:
                logger.info(f"No {promotion_type.value} discounts found for store {store}.")
                return result

            self.validator.validate_rules(rules)
            result.records = self.resolver.resolve(priced, categories, rules, promotion_type)

        if not result.records:
            logger.info(f"No {promotion_type.value} prices resolved for store {store}.")
            return result

        result.outcome = self.transmitter.transmit(result.records, self.params)

        summary = ResolutionReport(promotion_type, result.records).summary()
        summary.update({
            'store': store,
            'products_priced': len(priced),
            'products_missing_price': len(result.ingestion.missing_ids),
            'failed_batches': len(result.ingestion.errors),
            'blob_uri': result.outcome.blob_uri,
            'duration_seconds': (datetime.now() - started_at).total_seconds()
        })
        self.transmitter.audit_logger.log_batch_run(result.outcome.transaction_id, summary)

        logger.info(f"Finished {promotion_type.value} price sync for store {store}.")
        return result
