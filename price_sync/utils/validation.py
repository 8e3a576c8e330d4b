from typing import Dict, List, Any, Iterable
import logging

from ..core.models import DiscountRule, PricedProduct


logger = logging.getLogger(__name__)


class RuleValidator:
    """Data quality checks on discount rules and priced products.

    Findings are reported, never acted on: the resolution engine decides
    what a questionable rule yields.
    """

    PERCENT_LIMITS = {
        'min': 0,
        'max': 100
    }

    def __init__(self):
        self.validation_stats = {
            'total_validated': 0,
            'passed': 0,
            'failed': 0,
            'warnings': 0
        }

    def validate_rule(self, rule: DiscountRule) -> Dict[str, Any]:
        """Check one rule, returning its errors and warnings"""
        self.validation_stats['total_validated'] += 1

        result = {
            'valid': True,
            'errors': [],
            'warnings': [],
            'offer_id': rule.offer_id
        }

        if not rule.offer_id:
            result['errors'].append("Offer id is missing")

        if rule.product > 0 and rule.category > 0:
            result['warnings'].append(
                f"Rule targets product {rule.product} and category {rule.category}; the product wins")
        elif rule.product <= 0 and rule.category <= 0:
            result['warnings'].append("Rule targets neither a product nor a category")

        if rule.variant > 0 and rule.product <= 0:
            result['warnings'].append(f"Variant {rule.variant} given without its product")

        if not self.PERCENT_LIMITS['min'] <= rule.discount <= self.PERCENT_LIMITS['max']:
            result['errors'].append(
                f"Discount {rule.discount}% outside {self.PERCENT_LIMITS['min']}-{self.PERCENT_LIMITS['max']}%")

        for label, value in (('Discount amount', rule.discount_amount), ('Offer price', rule.offer_price)):
            if value < 0:
                result['errors'].append(f"{label} {value} is negative")

        if rule.lowest_qty <= 0:
            result['warnings'].append(f"Lowest quantity {rule.lowest_qty} is not positive")

        if rule.valid_from and rule.valid_to and rule.valid_to < rule.valid_from:
            result['errors'].append(f"Valid to {rule.valid_to} is before valid from {rule.valid_from}")

        result['valid'] = not result['errors']
        if result['valid']:
            self.validation_stats['passed'] += 1
        else:
            self.validation_stats['failed'] += 1
        if result['warnings']:
            self.validation_stats['warnings'] += 1

        return result

    def validate_rules(self, rules: Iterable[DiscountRule]) -> List[Dict[str, Any]]:
        results = [self.validate_rule(rule) for rule in rules]
        failed = [r for r in results if not r['valid']]
        if failed:
            logger.warning(f"{len(failed)} discount rules failed validation")
        return results

    def find_duplicate_record_ids(self, catalog: Iterable[PricedProduct]) -> List[int]:
        """Record ids present more than once in a catalog snapshot"""
        counts: Dict[int, int] = {}
        for product in catalog:
            counts[product.record_id] = counts.get(product.record_id, 0) + 1
        duplicates = [record_id for record_id, count in counts.items() if count > 1]
        if duplicates:
            logger.warning(f"Catalog has {len(duplicates)} duplicated record ids")
        return duplicates
