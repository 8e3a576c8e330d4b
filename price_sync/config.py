"""Run parameters for a price sync pass.

Values come from three layers, later ones winning: the module defaults in
``price_sync.PRICE_SETTINGS``, the partnership settings mapping handed to the
run, and process environment variables.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Mapping, Optional
import logging

from . import PRICE_SETTINGS, FEED_FILE_NAMES
from .core.models import PromotionType
from .core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable -> PriceParams field
ENVIRONMENT_KEYS = {
    'BatchSize': 'batch_size',
    'MaxDegreeOfParallelism': 'max_degree_of_parallelism',
    'MaxRetries': 'max_retries',
    'ArchiveBlobContainer': 'archive_container',
}

FILE_NAME_KEYS = {
    'special': 'SpecialPriceFileName',
    'tier': 'TierPriceFileName',
    'deal': 'DealPriceFileName',
    'base': 'BasePriceFileName',
}


def _tomorrow() -> datetime:
    return (datetime.now() + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass
class PriceParams:
    """Parameter bundle for one resolution / transmission pass"""
    promotion_type: PromotionType = PromotionType.SPECIAL
    store_view_code: str = ""
    website: str = ""
    operating_unit_number: str = ""
    batch_size: int = PRICE_SETTINGS['batch_size']
    max_degree_of_parallelism: int = PRICE_SETTINGS['max_degree_of_parallelism']
    max_retries: int = PRICE_SETTINGS['max_retries']
    dedupe: bool = PRICE_SETTINGS['dedupe']
    archive_container: str = PRICE_SETTINGS['archive_container']
    topic_name: str = PRICE_SETTINGS['topic_name']
    file_names: Dict[str, str] = field(default_factory=lambda: FEED_FILE_NAMES.copy())
    from_date: datetime = field(default_factory=_tomorrow)

    def __post_init__(self):
        self.promotion_type = PromotionType.parse(self.promotion_type)
        if self.batch_size < 1:
            raise ConfigurationError(f"Batch size must be positive, got {self.batch_size}")
        if self.max_degree_of_parallelism < 1:
            raise ConfigurationError(
                f"Max degree of parallelism must be positive, got {self.max_degree_of_parallelism}")
        if self.max_retries < 0:
            raise ConfigurationError(f"Max retries cannot be negative, got {self.max_retries}")

    @property
    def file_name(self) -> str:
        """Feed file name for the selected promotion type"""
        return self.file_names[self.promotion_type.value]


def _parse_int(key: str, value: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"Setting {key} must be an integer, got {value!r}")


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def load_price_params(settings: Optional[Mapping[str, str]] = None,
                      environ: Optional[Mapping[str, str]] = None) -> PriceParams:
    """Build PriceParams from a settings mapping and the environment"""
    settings = settings or {}
    environ = os.environ if environ is None else environ

    if not settings.get('PriceType'):
        raise ConfigurationError("Setting PriceType is required")

    values = {
        'promotion_type': settings['PriceType'],
        'store_view_code': settings.get('MagentoStoreViewCode', ''),
        'website': settings.get('MagentoStoreWebsite', ''),
        'operating_unit_number': settings.get('OUN', ''),
        'topic_name': settings.get('TargetTopic', PRICE_SETTINGS['topic_name']),
        'dedupe': _parse_bool(settings.get('Dedupe', PRICE_SETTINGS['dedupe'])),
    }

    for env_key, field_name in ENVIRONMENT_KEYS.items():
        raw = environ.get(env_key) or settings.get(env_key)
        if not raw:
            continue
        if field_name == 'archive_container':
            values[field_name] = raw
        else:
            values[field_name] = _parse_int(env_key, raw)

    file_names = FEED_FILE_NAMES.copy()
    for price_type, env_key in FILE_NAME_KEYS.items():
        name = environ.get(env_key) or settings.get(env_key)
        if name:
            file_names[price_type] = name
    values['file_names'] = file_names

    try:
        params = PriceParams(**values)
    except ValueError as e:
        raise ConfigurationError(f"Invalid price settings: {e}") from e

    logger.info(f"Loaded price params for {params.promotion_type.value} prices "
                f"(batch size {params.batch_size}, parallelism {params.max_degree_of_parallelism})")
    return params
