import requests
from typing import Dict, List, Optional, Any
import threading
import time
from datetime import datetime
import logging

from ..core.exceptions import BackendError
from ..core.models import (
    Category, DiscountRule, ProductReference, PromotionType, RawProductPrice
)


logger = logging.getLogger(__name__)


class RetailServerClient:
    """HTTP client for the retail server's catalog, price and discount endpoints"""

    ENDPOINTS = {
        'categories': 'categories',
        'products': 'products/ids',
        'prices': 'prices/active',
        PromotionType.SPECIAL: 'discounts/simple',
        PromotionType.TIER: 'discounts/quantity',
        PromotionType.DEAL: 'discounts/mix-and-match',
    }

    # Response keys wrapping each record list
    RESULT_KEYS = ('value', 'Results', 'SimpleDiscounts', 'QuantityDiscounts',
                   'MixAndMatchDealPrices', 'Products')

    def __init__(self, base_url: str, access_token: Optional[str] = None,
                 channel_id: Optional[int] = None, min_interval: float = 0.2,
                 timeout: int = 60):
        self.base_url = base_url.rstrip('/') + '/'
        self.channel_id = channel_id
        self.min_interval = min_interval
        self.timeout = timeout
        self.session = requests.Session()
        if access_token:
            self.session.headers['Authorization'] = f"Bearer {access_token}"
        self.request_count = 0
        self.last_request_time = 0
        # Shared by the base price ingestion workers
        self._lock = threading.Lock()

    def _rate_limit(self):
        """Keep a minimum gap between requests to avoid throttling"""
        with self._lock:
            current_time = time.time()
            time_since_last = current_time - self.last_request_time
            if time_since_last < self.min_interval:
                time.sleep(self.min_interval - time_since_last)
            self.last_request_time = time.time()
            self.request_count += 1

    def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        self._rate_limit()
        url = self.base_url + endpoint

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            logger.error(f"Retail server request failed for {url}: {str(e)}")
            raise BackendError(
                f"Retail server request failed: {e}",
                status_code=getattr(e.response, 'status_code', None),
                url=url
            ) from e

    def _records(self, payload: Any) -> List[Dict[str, Any]]:
        if payload is None:
            return []
        if isinstance(payload, list):
            return payload
        for key in self.RESULT_KEYS:
            if key in payload:
                return payload[key] or []
        raise BackendError(f"Unexpected retail server payload with keys {sorted(payload)}")

    def _channel_params(self, store_scope: Optional[str] = None) -> Dict[str, Any]:
        params = {}
        if self.channel_id is not None:
            params['channelId'] = self.channel_id
        if store_scope:
            params['channel'] = store_scope
        return params

    def fetch_categories(self, store_scope: Optional[str] = None) -> List[Category]:
        payload = self._request('GET', self.ENDPOINTS['categories'], params=self._channel_params(store_scope))
        categories = [Category.from_dict(record) for record in self._records(payload)]
        if not categories:
            raise BackendError("0 categories found in the retail server!")
        return categories

    def fetch_catalog(self, store_scope: Optional[str] = None) -> List[ProductReference]:
        payload = self._request('GET', self.ENDPOINTS['products'], params=self._channel_params(store_scope))
        if payload is None:
            raise BackendError("0 products found in the retail server!")
        return [ProductReference.from_dict(record) for record in self._records(payload)]

    def fetch_prices(self, product_ids: List[int], from_date: datetime) -> List[RawProductPrice]:
        body = {
            'ProductIds': list(product_ids),
            'FromDate': from_date.isoformat(),
            'IncludeSimpleDiscountsInContextualPrice': True
        }
        if self.channel_id is not None:
            body['ChannelId'] = self.channel_id
        payload = self._request('POST', self.ENDPOINTS['prices'], json=body)
        return [RawProductPrice.from_dict(record) for record in self._records(payload)]

    def fetch_discount_rules(self, promotion_type: PromotionType,
                             store_scope: Optional[str] = None) -> List[DiscountRule]:
        promotion_type = PromotionType.parse(promotion_type)
        if promotion_type not in self.ENDPOINTS:
            raise ValueError(f"{promotion_type.value} prices have no discount rules")

        payload = self._request('GET', self.ENDPOINTS[promotion_type], params=self._channel_params(store_scope))
        rules = [DiscountRule.from_dict(record) for record in self._records(payload)]
        logger.info(f"Fetched {len(rules)} {promotion_type.value} discount rules for store {store_scope}")
        return rules
