"""Tests for the promotional price resolution engine"""

from datetime import datetime
from decimal import Decimal

import pytest

from price_sync.catalog.category_index import CategoryIndex
from price_sync.config import PriceParams
from price_sync.core.exceptions import CategoryCycleError, PriceCalculationError
from price_sync.core.models import (
    Category, DiscountRule, LineType, PricedProduct, PromotionType, records_to_dicts
)
from price_sync.orchestrator import PromotionResolver
from price_sync.rules.discount_grouper import DiscountRuleGrouper
from price_sync.calculators.base import PriceCalculator
from price_sync.calculators.tier_price import TierPriceCalculator


def create_test_categories():
    """Small hierarchy: root -> Tools -> Saws -> Hand Saws, Tools -> Clamps, root -> Lumber"""
    return [
        Category(record_id=1, parent_category=0, name="Rockler Product Hierarchy"),
        Category(record_id=10, parent_category=1, name="Tools"),
        Category(record_id=100, parent_category=10, name="Saws"),
        Category(record_id=1000, parent_category=100, name="Hand Saws"),
        Category(record_id=101, parent_category=10, name="Clamps"),
        Category(record_id=20, parent_category=1, name="Lumber"),
    ]


def create_test_catalog():
    return [
        PricedProduct(record_id=1, sku="SAW-1", base_price=Decimal('50.00'), uom="EA", category_id=100),
        PricedProduct(record_id=2, sku="SAW-2", base_price=Decimal('100.00'), uom="ea", category_id=100),
        PricedProduct(record_id=3, sku="HAND-1", base_price=Decimal('20.00'), uom="EA", category_id=1000),
        PricedProduct(record_id=4, sku="CLAMP-1", base_price=Decimal('15.00'), uom="EA", category_id=101),
        PricedProduct(record_id=5, sku="TOOL-1", base_price=Decimal('10.00'), uom="EA", category_id=10),
        PricedProduct(record_id=6, sku="OAK-1", base_price=Decimal('30.00'), uom="BF", category_id=20),
        PricedProduct(record_id=7, sku="SAW-1-RED", base_price=Decimal('55.00'), uom="EA", category_id=100),
    ]


def create_rule(offer_id="OFFER-1", **kwargs):
    values = {
        'valid_from': datetime(2026, 11, 1),
        'valid_to': datetime(2026, 11, 30),
        'name': f"{offer_id} promo",
        'description': "Holiday promotion",
    }
    values.update(kwargs)
    return DiscountRule(offer_id=offer_id, **values)


def create_resolver(**params):
    return PromotionResolver(PriceParams(store_view_code="default", website="base", **params))


def skus(records):
    return [record.sku for record in records]


def test_category_index_paths():
    """Paths run root to leaf and show the root under its display name"""
    index = CategoryIndex(create_test_categories())

    assert index.path_of(1000) == "Default Category/Tools/Saws/Hand Saws"
    assert index.path_of(1) == "Default Category"
    assert index.path_of(999) == ""
    assert index.children_of(10) == [100, 101]
    assert index.parent_of(100) == 10
    assert index.roots() == [1]
    assert index.taxonomy(1000) == ("Tools", "Saws", "Hand Saws")
    assert index.taxonomy(10) == ("", "Rockler Product Hierarchy", "Tools")


def test_category_with_missing_parent_is_a_root():
    index = CategoryIndex([
        Category(record_id=5, parent_category=404, name="Orphan"),
        Category(record_id=6, parent_category=5, name="Child"),
    ])

    assert index.parent_of(5) is None
    assert index.path_of(6) == "Orphan/Child"
    assert 5 in index.roots()


def test_grouper_exclusion_sets():
    rules = [
        create_rule(category=10),
        create_rule(category=100, line_type=LineType.EXCLUDE),
        create_rule(product=4, line_type=LineType.EXCLUDE),
        create_rule(product=1, variant=7, line_type=LineType.EXCLUDE),
        create_rule("OFFER-2", category=20),
    ]

    offers = DiscountRuleGrouper().group(rules)

    assert [offer.offer_id for offer in offers] == ["OFFER-1", "OFFER-2"]
    first = offers[0]
    assert first.excluded_categories == {100}
    assert first.excluded_products == {4}
    assert first.excluded_variants == {7}
    assert len(first.include_rules) == 1
    assert offers[1].excluded_categories == frozenset()


def test_category_expansion_order():
    """Target products first, then each child subtree depth-first in snapshot order"""
    resolver = create_resolver()
    records = resolver.resolve_special(create_test_catalog(), create_test_categories(),
                                       [create_rule(category=10, discount=Decimal('10'))])

    assert skus(records) == ["TOOL-1", "SAW-1", "SAW-2", "SAW-1-RED", "HAND-1", "CLAMP-1"]


def test_subtree_pruning():
    """Excluding Saws also removes Hand Saws, which was never named"""
    rules = [
        create_rule(category=10, discount=Decimal('10')),
        create_rule(category=100, line_type=LineType.EXCLUDE),
    ]

    for promotion_type in (PromotionType.SPECIAL, PromotionType.TIER):
        records = create_resolver().resolve(create_test_catalog(), create_test_categories(), rules, promotion_type)
        assert skus(records) == ["TOOL-1", "CLAMP-1"]

    deal = create_resolver().resolve_deal(create_test_catalog(), create_test_categories(), rules)
    assert deal[0].skus == "TOOL-1,CLAMP-1"


def test_excluded_products_and_variants():
    rules = [
        create_rule(category=100, discount=Decimal('10')),
        create_rule(product=2, line_type=LineType.EXCLUDE),
        create_rule(product=1, variant=7, line_type=LineType.EXCLUDE),
    ]

    records = create_resolver().resolve_special(create_test_catalog(), create_test_categories(), rules)

    assert skus(records) == ["SAW-1", "HAND-1"]


def test_uom_asymmetry():
    """Rule UOM 'EA' matches product UOM 'ea' for special and deal, not for tier"""
    rules = [create_rule(product=2, uom="EA", discount=Decimal('10'), offer_price=Decimal('80'))]
    catalog, categories = create_test_catalog(), create_test_categories()

    assert skus(create_resolver().resolve_special(catalog, categories, rules)) == ["SAW-2"]
    assert create_resolver().resolve_deal(catalog, categories, rules)[0].skus == "SAW-2"
    assert create_resolver().resolve_tier(catalog, categories, rules) == []

    category_rules = [create_rule(category=100, uom="EA", discount=Decimal('10'))]
    assert skus(create_resolver().resolve_special(catalog, categories, category_rules)) == ["SAW-1", "SAW-2", "SAW-1-RED", "HAND-1"]
    assert skus(create_resolver().resolve_tier(catalog, categories, category_rules)) == ["SAW-1", "SAW-1-RED", "HAND-1"]


def test_empty_rule_uom_matches_every_unit():
    rules = [create_rule(category=1, discount=Decimal('5'))]

    records = create_resolver().resolve_tier(create_test_catalog(), create_test_categories(), rules)

    assert len(records) == len(create_test_catalog())


def test_variant_targeting():
    rules = [create_rule(product=1, variant=7, discount=Decimal('10'))]

    records = create_resolver().resolve_special(create_test_catalog(), create_test_categories(), rules)

    assert skus(records) == ["SAW-1-RED"]
    assert records[0].special_price == Decimal('49.5')


def test_special_percent_discount():
    rules = [create_rule(product=1, discount=Decimal('20'))]

    records = create_resolver().resolve_special(create_test_catalog(), create_test_categories(), rules)

    assert records[0].special_price == Decimal('40.00')
    assert records[0].special_price_feed == Decimal('40.00')
    assert records[0].to_dict() == {
        'Sku': "SAW-1",
        'SpecialPrice': 40.0,
        'SpecialPriceFeed': 40.0,
        'EligibleForPromo': "no",
        'ValidFrom': "2026-11-01",
        'ValidTo': "2026-11-30",
        'StoreViewCode': "default"
    }


def test_special_amount_and_flat_price():
    rules = [
        create_rule(product=1, discount_amount=Decimal('7.50')),
        create_rule("OFFER-2", product=4, offer_price=Decimal('9.99')),
    ]

    records = create_resolver().resolve_special(create_test_catalog(), create_test_categories(), rules)

    assert [r.special_price for r in records] == [Decimal('42.50'), Decimal('9.99')]


def test_inert_special_rules_are_skipped():
    rule = create_rule(category=10, discount_method="flat-zero", offer_price=Decimal('5'))

    assert create_resolver().resolve_special(create_test_catalog(), create_test_categories(), [rule]) == []
    # Only simple discounts treat the flat-zero method as inert
    assert len(create_resolver().resolve_tier(create_test_catalog(), create_test_categories(), [rule])) > 0


def test_tier_amount_division():
    catalog = [PricedProduct(record_id=1, sku="A", base_price=Decimal('100.00'), uom="EA", category_id=10)]
    rules = [create_rule(product=1, discount_amount=Decimal('10.00'), lowest_qty=Decimal('5'))]

    records = create_resolver().resolve_tier(catalog, create_test_categories(), rules)

    assert records[0].tier_price == Decimal('98.00')
    assert records[0].quantity == "5"
    assert records[0].to_dict()['CustomerGroup'] == "ALL GROUPS"
    assert records[0].to_dict()['ValueType'] == "Fixed"
    assert records[0].website == "base"


def test_tier_zero_lowest_quantity_is_fatal():
    rules = [create_rule(product=1, discount_amount=Decimal('10.00'), lowest_qty=Decimal('0'))]

    with pytest.raises(PriceCalculationError):
        create_resolver().resolve_tier(create_test_catalog(), create_test_categories(), rules)


def test_tier_quantity_formatting():
    calculator = TierPriceCalculator()

    assert calculator.format_quantity(Decimal('5')) == "5"
    assert calculator.format_quantity(Decimal('1.5')) == "1.5"
    assert calculator.format_quantity(Decimal('2.505')) == "2.50"
    assert calculator.format_quantity(Decimal('2.515')) == "2.52"


def test_deal_merge():
    """Three SKUs at 10, 15 and 20 under a 30 deal save 15 in total"""
    catalog = [
        PricedProduct(record_id=11, sku="A", base_price=Decimal('10.00'), uom="EA", category_id=10),
        PricedProduct(record_id=12, sku="B", base_price=Decimal('15.00'), uom="EA", category_id=10),
        PricedProduct(record_id=13, sku="C", base_price=Decimal('20.00'), uom="EA", category_id=10),
    ]
    rules = [create_rule("DEAL-1", product=pid, offer_price=Decimal('30.00')) for pid in (11, 12, 13)]

    records = create_resolver().resolve_deal(catalog, create_test_categories(), rules)

    assert len(records) == 1
    assert records[0].skus == "A,B,C"
    assert records[0].deal_price == Decimal('30.00')
    assert records[0].discount == Decimal('15.00')
    assert records[0].to_dict()['OfferId'] == "DEAL-1"
    assert records[0].to_dict()['Status'] == 0


def test_deal_merge_keeps_duplicates():
    rules = [
        create_rule("DEAL-1", category=100, offer_price=Decimal('100')),
        create_rule("DEAL-1", category=1000, offer_price=Decimal('100')),
    ]

    records = create_resolver().resolve_deal(create_test_catalog(), create_test_categories(), rules)

    assert records[0].skus == "SAW-1,SAW-2,SAW-1-RED,HAND-1,HAND-1"
    assert records[0].discount == Decimal('145.00')


def test_overlapping_rules_duplicate_unless_deduped():
    rules = [
        create_rule(category=10, discount=Decimal('10')),
        create_rule(category=100, discount=Decimal('20')),
    ]
    catalog, categories = create_test_catalog(), create_test_categories()

    kept = create_resolver().resolve_special(catalog, categories, rules)
    assert skus(kept).count("SAW-1") == 2
    assert len(kept) == 10

    deduped = create_resolver(dedupe=True).resolve_special(catalog, categories, rules)
    assert skus(deduped) == ["TOOL-1", "SAW-1", "SAW-2", "SAW-1-RED", "HAND-1", "CLAMP-1"]
    # The first rule covering a product sets its price
    assert deduped[1].special_price == Decimal('45.00')


def test_missing_category_skips_only_that_rule():
    rules = [
        create_rule(category=999, discount=Decimal('10')),
        create_rule(category=20, discount=Decimal('10')),
        create_rule(product=404, discount=Decimal('10')),
    ]

    records = create_resolver().resolve_special(create_test_catalog(), create_test_categories(), rules)

    assert skus(records) == ["OAK-1"]


def test_empty_rules():
    assert create_resolver().resolve_special(create_test_catalog(), create_test_categories(), []) == []
    assert create_resolver().resolve_deal(create_test_catalog(), create_test_categories(), []) == []


def test_category_cycle_is_detected():
    categories = [
        Category(record_id=1, parent_category=2, name="A"),
        Category(record_id=2, parent_category=1, name="B"),
    ]
    catalog = [PricedProduct(record_id=1, sku="X", base_price=Decimal('1'), uom="EA", category_id=1)]

    # Building the index only warns; traversal fails
    index = CategoryIndex(categories)
    assert index.path_of(1) == "B/A"

    with pytest.raises(CategoryCycleError) as excinfo:
        create_resolver().resolve_special(catalog, index, [create_rule(category=1, discount=Decimal('10'))])
    assert excinfo.value.category_id == 1


def test_resolution_is_idempotent():
    rules = [
        create_rule(category=10, discount=Decimal('10')),
        create_rule(category=101, line_type=LineType.EXCLUDE),
        create_rule("OFFER-2", product=6, discount_amount=Decimal('3')),
    ]
    catalog, categories = create_test_catalog(), create_test_categories()

    for promotion_type in (PromotionType.SPECIAL, PromotionType.TIER, PromotionType.DEAL):
        first = records_to_dicts(create_resolver().resolve(catalog, categories, rules, promotion_type))
        second = records_to_dicts(create_resolver().resolve(catalog, categories, rules, promotion_type))
        assert first == second


def test_base_price_feed():
    catalog = create_test_catalog() + [
        PricedProduct(record_id=8, sku="SAW-1", base_price=Decimal('50.00'), uom="BOX", category_id=100),
        PricedProduct(record_id=9, sku="SAW-1", base_price=Decimal('52.00'), uom="EA", category_id=100),
    ]

    records = create_resolver().resolve(catalog, [], [], PromotionType.BASE)

    saw_rows = [r for r in records if r.sku == "SAW-1"]
    assert [(r.base_price, r.uom) for r in saw_rows] == [(Decimal('50.00'), "EA"), (Decimal('52.00'), "EA")]
    assert len(records) == len(create_test_catalog()) + 1
    assert records[0].store_view_code == "default"


def test_target_category_walked_even_when_excluded():
    """An excluded target category still yields its own products; excluded children stay pruned"""
    rules = [
        create_rule(category=100, discount=Decimal('10')),
        create_rule(category=100, line_type=LineType.EXCLUDE),
        create_rule(category=1000, line_type=LineType.EXCLUDE),
    ]

    records = create_resolver().resolve_special(create_test_catalog(), create_test_categories(), rules)

    assert skus(records) == ["SAW-1", "SAW-2", "SAW-1-RED"]


def test_direct_product_ignores_product_exclusion():
    rules = [
        create_rule(product=1, discount=Decimal('10')),
        create_rule(product=1, line_type=LineType.EXCLUDE),
    ]

    records = create_resolver().resolve_special(create_test_catalog(), create_test_categories(), rules)

    assert skus(records) == ["SAW-1"]
    assert records[0].special_price == Decimal('45.00')


def test_line_type_codes():
    assert LineType.parse(0) == LineType.INCLUDE
    assert LineType.parse("1") == LineType.EXCLUDE
    assert LineType.parse("1.0") == LineType.EXCLUDE
    assert LineType.parse(1.0) == LineType.EXCLUDE
    assert LineType.parse(" exclude ") == LineType.EXCLUDE
    assert DiscountRule.from_dict({'OfferId': "ST-1", 'LineType': "1.0"}).is_exclude


def test_calculator_base_is_abstract():
    with pytest.raises(TypeError):
        PriceCalculator()


if __name__ == "__main__":
    tests = [
        test_category_index_paths,
        test_category_with_missing_parent_is_a_root,
        test_grouper_exclusion_sets,
        test_category_expansion_order,
        test_subtree_pruning,
        test_excluded_products_and_variants,
        test_uom_asymmetry,
        test_empty_rule_uom_matches_every_unit,
        test_variant_targeting,
        test_special_percent_discount,
        test_special_amount_and_flat_price,
        test_inert_special_rules_are_skipped,
        test_tier_amount_division,
        test_tier_zero_lowest_quantity_is_fatal,
        test_tier_quantity_formatting,
        test_deal_merge,
        test_deal_merge_keeps_duplicates,
        test_overlapping_rules_duplicate_unless_deduped,
        test_missing_category_skips_only_that_rule,
        test_empty_rules,
        test_category_cycle_is_detected,
        test_resolution_is_idempotent,
        test_base_price_feed,
        test_target_category_walked_even_when_excluded,
        test_direct_product_ignores_product_exclusion,
        test_line_type_codes,
        test_calculator_base_is_abstract,
    ]

    print("=== Promotional Price Engine Tests ===")
    for test in tests:
        test()
        print(f"✅ {test.__name__}")
    print(f"\nTotal: {len(tests)} tests passed")
