from typing import Dict, List, Any
import pandas as pd
from datetime import datetime

from ..core.models import PromotionType


PRICE_COLUMNS = {
    PromotionType.SPECIAL: 'SpecialPrice',
    PromotionType.TIER: 'TierPrice',
    PromotionType.DEAL: 'DealPrice',
    PromotionType.BASE: 'BasePrice',
}


class ResolutionReport:
    """Summaries of a resolved price feed"""

    def __init__(self, promotion_type: PromotionType, records: List[Any]):
        self.report_timestamp = datetime.now()
        self.promotion_type = PromotionType.parse(promotion_type)
        self.frame = pd.DataFrame([record.to_dict() for record in records])

    @property
    def price_column(self) -> str:
        return PRICE_COLUMNS[self.promotion_type]

    def summary(self) -> Dict[str, Any]:
        """Row counts and price statistics"""
        summary = {
            'promotion_type': self.promotion_type.value,
            'generated_at': self.report_timestamp.isoformat(),
            'total_rows': len(self.frame)
        }
        if self.frame.empty:
            return summary

        prices = self.frame[self.price_column]
        summary.update({
            'min_price': round(float(prices.min()), 2),
            'max_price': round(float(prices.max()), 2),
            'mean_price': round(float(prices.mean()), 2)
        })

        if 'Sku' in self.frame:
            summary['distinct_skus'] = int(self.frame['Sku'].nunique())
            summary['duplicate_rows'] = int(self.frame.duplicated(subset=['Sku']).sum())

        if self.promotion_type == PromotionType.DEAL:
            summary['offers'] = int(self.frame['OfferId'].nunique())
            summary['total_savings'] = round(float(self.frame['Discount'].sum()), 2)

        return summary

    def offer_savings(self) -> pd.DataFrame:
        """Per-offer bundle size, deal price and savings for deal feeds"""
        if self.promotion_type != PromotionType.DEAL or self.frame.empty:
            return pd.DataFrame(columns=['OfferId', 'Name', 'SkuCount', 'DealPrice', 'Discount'])

        frame = self.frame.copy()
        frame['SkuCount'] = frame['Skus'].str.split(',').str.len()
        return (frame[['OfferId', 'Name', 'SkuCount', 'DealPrice', 'Discount']]
                .sort_values('Discount', ascending=False)
                .reset_index(drop=True))

    def sku_counts(self) -> pd.DataFrame:
        """Rows per SKU, most frequent first"""
        if self.frame.empty or 'Sku' not in self.frame:
            return pd.DataFrame(columns=['Sku', 'Rows'])
        counts = self.frame.groupby('Sku').size().reset_index(name='Rows')
        return counts.sort_values(['Rows', 'Sku'], ascending=[False, True]).reset_index(drop=True)
