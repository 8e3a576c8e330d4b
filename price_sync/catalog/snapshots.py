"""Snapshot loaders for offline runs.

Catalog, category and discount rule exports are read from CSV (through
pandas) or JSON files into the engine's models. Sources may be paths or
open file objects with a ``name``, such as dashboard uploads.
"""

from typing import Any, Callable, Dict, List, Union, IO
from pathlib import Path
import json
import logging

import pandas as pd

from ..core.models import Category, PricedProduct, DiscountRule

logger = logging.getLogger(__name__)

Source = Union[str, Path, IO]


def _suffix(source: Source) -> str:
    name = source if isinstance(source, (str, Path)) else getattr(source, 'name', '')
    return Path(str(name)).suffix.lower()


def read_records(source: Source) -> List[Dict[str, Any]]:
    """Rows of a CSV or JSON export as dicts"""
    suffix = _suffix(source)

    if suffix == '.csv':
        # Keep codes such as UOM and SKU as text
        frame = pd.read_csv(source, dtype=str, keep_default_na=False)
        return frame.to_dict(orient='records')

    if suffix == '.json':
        if isinstance(source, (str, Path)):
            with open(source, 'r') as f:
                data = json.load(f)
        else:
            data = json.load(source)
        if isinstance(data, dict):
            # Feed wrapper {"Prices": [...]} or {"items": [...]}
            for key in ('Prices', 'items', 'Items'):
                if key in data:
                    return data[key]
            raise ValueError(f"No record list found in {_display(source)}")
        return data

    raise ValueError(f"Unsupported snapshot format: {_display(source)}")


def _display(source: Source) -> str:
    return str(source) if isinstance(source, (str, Path)) else getattr(source, 'name', repr(source))


def _load(source: Source, factory: Callable[[Dict[str, Any]], Any], label: str) -> List[Any]:
    records = read_records(source)
    items = [factory(record) for record in records]
    logger.info(f"Loaded {len(items)} {label} from {_display(source)}")
    return items


def load_categories(source: Source) -> List[Category]:
    return _load(source, Category.from_dict, 'categories')


def load_catalog(source: Source) -> List[PricedProduct]:
    return _load(source, PricedProduct.from_dict, 'priced products')


def load_discount_rules(source: Source) -> List[DiscountRule]:
    return _load(source, DiscountRule.from_dict, 'discount rules')
