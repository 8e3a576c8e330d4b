from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from enum import Enum

from .. import FEED_DEFAULTS, FLAT_ZERO_METHOD


class LineType(Enum):
    INCLUDE = 0
    EXCLUDE = 1

    @classmethod
    def parse(cls, value: Any) -> 'LineType':
        """Accept backend integer codes as well as names"""
        if isinstance(value, LineType):
            return value
        try:
            return cls(int(float(value)))
        except (TypeError, ValueError):
            return cls[str(value).strip().upper()]


class PromotionType(Enum):
    SPECIAL = "special"
    TIER = "tier"
    DEAL = "deal"
    BASE = "base"

    @classmethod
    def parse(cls, value: Any) -> 'PromotionType':
        if isinstance(value, PromotionType):
            return value
        return cls(str(value).strip().lower())


def _is_blank(value: Any) -> bool:
    # pandas hands missing cells over as float NaN
    if value is None:
        return True
    if isinstance(value, float) and value != value:
        return True
    return isinstance(value, str) and value.strip() == ""


def to_decimal(value: Any, default: Decimal = Decimal('0')) -> Decimal:
    if _is_blank(value):
        return default
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value).strip())


def to_int(value: Any, default: int = 0) -> int:
    if _is_blank(value):
        return default
    return int(float(value))


def to_text(value: Any) -> str:
    if _is_blank(value):
        return ""
    return str(value).strip()


def to_datetime(value: Any) -> Optional[datetime]:
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text)


def format_date(value: Optional[datetime]) -> str:
    return value.date().isoformat() if value else ""


def format_money(value: Decimal) -> float:
    return float(value)


@dataclass
class Category:
    """Node of the catalog category forest"""
    record_id: int
    parent_category: Optional[int] = None
    name: str = ""

    @property
    def is_root(self) -> bool:
        return not self.parent_category

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        parent = data.get('ParentCategory', data.get('parent_category'))
        return cls(
            record_id=to_int(data.get('RecordId', data.get('record_id'))),
            parent_category=None if _is_blank(parent) else to_int(parent),
            name=to_text(data.get('Name', data.get('name')))
        )


@dataclass
class ProductReference:
    """Sellable unit as listed by the backend, before its price is known"""
    record_id: int
    sku: str
    uom: str = ""
    category_id: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProductReference':
        return cls(
            record_id=to_int(data.get('Id', data.get('record_id'))),
            sku=to_text(data.get('SKU', data.get('sku'))),
            uom=to_text(data.get('UOM', data.get('uom'))),
            category_id=to_int(data.get('CategoryId', data.get('category_id')))
        )


@dataclass
class RawProductPrice:
    """Active price lookup result for one product"""
    product_id: int
    trade_agreement_price: Optional[Decimal] = None
    base_price: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawProductPrice':
        trade = data.get('TradeAgreementPrice', data.get('trade_agreement_price'))
        base = data.get('BasePrice', data.get('base_price'))
        return cls(
            product_id=to_int(data.get('ProductId', data.get('product_id'))),
            trade_agreement_price=None if _is_blank(trade) else to_decimal(trade),
            base_price=None if _is_blank(base) else to_decimal(base)
        )


@dataclass
class PricedProduct:
    """One sellable unit (master product or variant) with its base price"""
    record_id: int
    sku: str
    base_price: Decimal
    uom: str = ""
    category_id: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PricedProduct':
        return cls(
            record_id=to_int(data.get('RecordId', data.get('record_id'))),
            sku=to_text(data.get('Sku', data.get('sku'))),
            base_price=to_decimal(data.get('BasePrice', data.get('base_price'))),
            uom=to_text(data.get('UOM', data.get('uom'))),
            category_id=to_int(data.get('Category', data.get('CategoryId', data.get('category_id'))))
        )


def _normalize_discount_method(value: Any) -> str:
    text = to_text(value)
    try:
        if text and Decimal(text) == 0:
            return FLAT_ZERO_METHOD
    except ArithmeticError:
        pass
    return text


@dataclass
class DiscountRule:
    """Raw discount line of an offer.

    A rule targets either a product (optionally narrowed to one variant) or
    a category. Include lines add scope, Exclude lines remove scope from the
    Include lines of the same offer.
    """
    offer_id: str
    product: int = 0
    variant: int = 0
    category: int = 0
    uom: str = ""
    line_type: LineType = LineType.INCLUDE
    discount: Decimal = Decimal('0')  # percent
    discount_amount: Decimal = Decimal('0')
    offer_price: Decimal = Decimal('0')
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    name: str = ""
    description: str = ""
    discount_method: str = ""
    lowest_qty: Decimal = Decimal('1')

    @property
    def is_include(self) -> bool:
        return self.line_type == LineType.INCLUDE

    @property
    def is_exclude(self) -> bool:
        return self.line_type == LineType.EXCLUDE

    @property
    def targets_product(self) -> bool:
        return self.product > 0

    @property
    def targets_category(self) -> bool:
        return self.category > 0 and self.product == 0

    @property
    def is_inert(self) -> bool:
        """Flat discount with nothing to discount"""
        return self.discount_method == FLAT_ZERO_METHOD and self.discount == 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DiscountRule':
        def pick(*keys):
            for key in keys:
                if key in data:
                    return data[key]
            return None

        line_type = pick('LineType', 'line_type')
        return cls(
            offer_id=to_text(pick('OfferId', 'offer_id')),
            product=to_int(pick('Product', 'product')),
            variant=to_int(pick('Variant', 'variant')),
            category=to_int(pick('Category', 'category')),
            uom=to_text(pick('UOM', 'uom')),
            line_type=LineType.INCLUDE if _is_blank(line_type) else LineType.parse(line_type),
            discount=to_decimal(pick('Discount', 'discount')),
            discount_amount=to_decimal(pick('DiscountAmount', 'discount_amount')),
            offer_price=to_decimal(pick('OfferPrice', 'offer_price')),
            valid_from=to_datetime(pick('ValidFrom', 'valid_from')),
            valid_to=to_datetime(pick('ValidTo', 'valid_to')),
            name=to_text(pick('Name', 'name')),
            description=to_text(pick('Description', 'description')),
            discount_method=_normalize_discount_method(pick('DiscountMethod', 'discount_method')),
            lowest_qty=to_decimal(pick('LowestQty', 'lowest_qty'), default=Decimal('1'))
        )


@dataclass
class SpecialPriceRecord:
    sku: str
    special_price: Decimal
    special_price_feed: Decimal
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    store_view_code: str = ""
    eligible_for_promo: str = FEED_DEFAULTS['eligible_for_promo']

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Sku': self.sku,
            'SpecialPrice': format_money(self.special_price),
            'SpecialPriceFeed': format_money(self.special_price_feed),
            'EligibleForPromo': self.eligible_for_promo,
            'ValidFrom': format_date(self.valid_from),
            'ValidTo': format_date(self.valid_to),
            'StoreViewCode': self.store_view_code
        }


@dataclass
class TierPriceRecord:
    sku: str
    quantity: str
    tier_price: Decimal
    website: str = ""
    customer_group: str = FEED_DEFAULTS['customer_group']
    value_type: str = FEED_DEFAULTS['value_type']

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Sku': self.sku,
            'Quantity': self.quantity,
            'TierPrice': format_money(self.tier_price),
            'Website': self.website,
            'CustomerGroup': self.customer_group,
            'ValueType': self.value_type
        }


@dataclass
class DealPriceRecord:
    """Deal row; one per matched product before merging, one per offer after"""
    offer_id: str
    skus: str
    base_price: Decimal
    deal_price: Decimal
    discount: Decimal = Decimal('0')
    name: str = ""
    description: str = ""
    website: str = ""
    status: int = FEED_DEFAULTS['deal_status']

    def to_dict(self) -> Dict[str, Any]:
        return {
            'OfferId': self.offer_id,
            'Skus': self.skus,
            'Discount': format_money(self.discount),
            'DealPrice': format_money(self.deal_price),
            'Name': self.name,
            'Description': self.description,
            'Status': self.status,
            'Website': self.website
        }


@dataclass
class BasePriceRecord:
    sku: str
    base_price: Decimal
    store_view_code: str = ""
    uom: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Sku': self.sku,
            'BasePrice': format_money(self.base_price),
            'StoreViewCode': self.store_view_code,
            'UOM': self.uom
        }


@dataclass
class StageMessage:
    """Audit record correlating one transmitted feed"""
    transaction_id: str
    step_name: str
    started_at: datetime = field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None
    data: str = ""
    status: str = "PENDING"
    overall_status: str = "IN_PROGRESS"
    error: Optional[str] = None
    properties: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Transaction_Id': self.transaction_id,
            'StepName': self.step_name,
            'StartedAt': self.started_at.isoformat(),
            'EndedAt': self.ended_at.isoformat() if self.ended_at else None,
            'Data': self.data,
            'Status': self.status,
            'OverallStatus': self.overall_status,
            'Error': self.error,
            'Properties': self.properties
        }


def records_to_dicts(records: List[Any]) -> List[Dict[str, Any]]:
    return [record.to_dict() for record in records]
