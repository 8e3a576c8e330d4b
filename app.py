import streamlit as st
import pandas as pd
import plotly.express as px
import json
import logging

# Import our modules
from price_sync.catalog import CategoryIndex, load_categories, load_catalog, load_discount_rules
from price_sync.config import PriceParams
from price_sync.core.exceptions import PriceSyncError
from price_sync.core.models import PromotionType, records_to_dicts
from price_sync.orchestrator import PromotionResolver
from price_sync.utils.reporting import ResolutionReport
from price_sync.utils.validation import RuleValidator

logging.basicConfig(level=logging.INFO)

# Page config
st.set_page_config(
    page_title="Promotional Price Sync",
    page_icon="🏷️",
    layout="wide"
)

# Initialize session state
if 'catalog' not in st.session_state:
    st.session_state.catalog = []
if 'categories' not in st.session_state:
    st.session_state.categories = []
if 'rules' not in st.session_state:
    st.session_state.rules = []
if 'resolved' not in st.session_state:
    st.session_state.resolved = {}

# Sidebar
st.sidebar.title("Promotional Price Sync")
st.sidebar.markdown("Review resolved prices before they reach the catalog feed")

st.sidebar.subheader("Snapshots")
catalog_file = st.sidebar.file_uploader("Priced catalog", type=['csv', 'json'])
categories_file = st.sidebar.file_uploader("Categories", type=['csv', 'json'])
rules_file = st.sidebar.file_uploader("Discount rules", type=['csv', 'json'])

if st.sidebar.button("📥 Load Snapshots", type="primary"):
    try:
        if catalog_file:
            st.session_state.catalog = load_catalog(catalog_file)
        if categories_file:
            st.session_state.categories = load_categories(categories_file)
        if rules_file:
            st.session_state.rules = load_discount_rules(rules_file)
        st.session_state.resolved = {}
        st.sidebar.success("Snapshots loaded")
    except (ValueError, KeyError) as e:
        st.sidebar.error(f"Could not load snapshots: {e}")

# Main navigation
page = st.sidebar.selectbox(
    "Select Module",
    ["Dashboard", "Resolve Prices", "Rule Validation", "Category Tree"]
)

# Dashboard Page
if page == "Dashboard":
    st.title("Promotional Price Dashboard 🏷️")

    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric("Priced Products", len(st.session_state.catalog))

    with col2:
        st.metric("Categories", len(st.session_state.categories))

    with col3:
        st.metric("Discount Rules", len(st.session_state.rules))

    with col4:
        offers = {rule.offer_id for rule in st.session_state.rules}
        st.metric("Offers", len(offers))

    if st.session_state.resolved:
        st.header("Resolved Feeds")
        feed_summary = pd.DataFrame([
            ResolutionReport(PromotionType(price_type), records).summary()
            for price_type, records in st.session_state.resolved.items()
        ])
        st.dataframe(feed_summary)
    else:
        st.info("ℹ️ No feeds resolved yet. Load snapshots and use the Resolve Prices module.")

# Resolve Prices Page
elif page == "Resolve Prices":
    st.title("Resolve Promotional Prices 🧮")

    col1, col2, col3 = st.columns([2, 2, 1])

    with col1:
        price_type = st.selectbox("Promotion type", [t.value for t in PromotionType])
        dedupe = st.checkbox("Drop products covered twice by one offer", value=False)

    with col2:
        store_view_code = st.text_input("Store view code", value="default")
        website = st.text_input("Website", value="base")

    with col3:
        resolve_button = st.button("▶️ Resolve", type="primary")

    if resolve_button:
        params = PriceParams(
            promotion_type=price_type,
            store_view_code=store_view_code,
            website=website,
            dedupe=dedupe
        )
        resolver = PromotionResolver(params)

        try:
            with st.spinner("Resolving prices..."):
                records = resolver.resolve(
                    st.session_state.catalog,
                    st.session_state.categories,
                    st.session_state.rules
                )
            st.session_state.resolved[price_type] = records
        except PriceSyncError as e:
            st.error(f"❌ Resolution failed: {e}")

    records = st.session_state.resolved.get(price_type)
    if records is not None:
        report = ResolutionReport(PromotionType(price_type), records)
        summary = report.summary()

        st.success(f"✅ {summary['total_rows']} {price_type} prices resolved")
        st.dataframe(report.frame)

        if price_type == PromotionType.DEAL.value and records:
            savings = report.offer_savings()
            fig = px.bar(savings, x='OfferId', y='Discount', hover_data=['Name', 'SkuCount', 'DealPrice'],
                         title='Bundle Savings per Offer',
                         labels={'Discount': 'Savings ($)'})
            st.plotly_chart(fig, use_container_width=True)
        elif records:
            fig = px.histogram(report.frame, x=report.price_column, nbins=30,
                               title=f'{price_type.title()} Price Distribution')
            st.plotly_chart(fig, use_container_width=True)

            duplicates = report.sku_counts()
            duplicates = duplicates[duplicates['Rows'] > 1]
            if not duplicates.empty:
                st.warning(f"⚠️ {len(duplicates)} SKUs appear in more than one row")
                st.dataframe(duplicates)

        st.download_button(
            "💾 Download feed JSON",
            data=json.dumps({'Prices': records_to_dicts(records)}, indent=2),
            file_name=f"{price_type}_prices.json",
            mime="application/json"
        )

# Rule Validation Page
elif page == "Rule Validation":
    st.title("Discount Rule Validation ✅")

    if not st.session_state.rules:
        st.info("ℹ️ Load a discount rule snapshot first.")
    else:
        validator = RuleValidator()
        results = validator.validate_rules(st.session_state.rules)

        duplicate_ids = validator.find_duplicate_record_ids(st.session_state.catalog)
        if duplicate_ids:
            st.warning(f"⚠️ Catalog lists {len(duplicate_ids)} record ids more than once: "
                       f"{', '.join(str(i) for i in duplicate_ids[:20])}")

        col1, col2, col3 = st.columns(3)
        col1.metric("Rules", validator.validation_stats['total_validated'])
        col2.metric("Failed", validator.validation_stats['failed'])
        col3.metric("With Warnings", validator.validation_stats['warnings'])

        flagged = [
            {
                'OfferId': r['offer_id'],
                'Errors': '; '.join(r['errors']),
                'Warnings': '; '.join(r['warnings'])
            }
            for r in results if r['errors'] or r['warnings']
        ]
        if flagged:
            st.dataframe(pd.DataFrame(flagged))
        else:
            st.success("✅ All rules passed validation")

# Category Tree Page
elif page == "Category Tree":
    st.title("Category Hierarchy 🌳")

    if not st.session_state.categories:
        st.info("ℹ️ Load a category snapshot first.")
    else:
        index = CategoryIndex(st.session_state.categories)
        product_counts = {}
        for product in st.session_state.catalog:
            product_counts[product.category_id] = product_counts.get(product.category_id, 0) + 1

        rows = []
        for category in st.session_state.categories:
            family, parent, line = index.taxonomy(category.record_id)
            rows.append({
                'RecordId': category.record_id,
                'Path': index.path_of(category.record_id),
                'Family': family,
                'Category': parent,
                'Line': line,
                'Children': len(index.children_of(category.record_id)),
                'Products': product_counts.get(category.record_id, 0)
            })
        tree = pd.DataFrame(rows).sort_values('Path')

        st.metric("Root Categories", len(index.roots()))
        st.dataframe(tree)
