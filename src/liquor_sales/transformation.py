# ========================
# src/liquor_sales/transformation.py
# ========================

"""
Data Transformation Module

The catalog of aggregate queries run over the cleaned sales records. Every
operation returns an ordered list of row dictionaries ready for export.
"""

import logging
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from .models import SalesRecord

logger = logging.getLogger(__name__)

CORE_ITEM_TYPES = ('LIQUOR', 'WINE', 'BEER')
CHANNELS = ('retail', 'warehouse')

# (label, highest rank in tier); None means "everything after"
REVENUE_TIERS = (
    ('Top 10', 10),
    ('Top 11-50', 50),
    ('Top 51-100', 100),
    ('Rest', None),
)

ZERO = Decimal(0)
HUNDRED = Decimal(100)
TWO_PLACES = Decimal('0.01')

Row = Dict[str, Any]


def round2(value: Optional[Decimal]) -> Optional[Decimal]:
    """Round half away from zero to 2 places; undefined stays undefined."""
    if value is None:
        return None
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def safe_divide(numerator, denominator) -> Optional[Decimal]:
    """Divide, returning None (undefined) when the denominator is zero or null."""
    if numerator is None or denominator is None or denominator == 0:
        return None
    return Decimal(numerator) / Decimal(denominator)


def percent(part, whole) -> Optional[Decimal]:
    ratio = safe_divide(part, whole)
    return None if ratio is None else ratio * HUNDRED


def sort_desc(rows: List[Row], metric: str, *tie_keys: str) -> List[Row]:
    """
    Order rows by ``metric`` descending, undefined values first, breaking ties
    by ``tie_keys`` ascending.
    """
    def key(row: Row) -> Tuple:
        value = row[metric]
        ties = tuple('' if row[k] is None else row[k] for k in tie_keys)
        if value is None:
            return (0, ZERO) + ties
        return (1, -value) + ties

    return sorted(rows, key=key)


def _amount(value: Optional[Decimal]) -> Decimal:
    # SUM() skips nulls
    return ZERO if value is None else value


def _is_positive(value: Optional[Decimal]) -> bool:
    return value is not None and value > 0


class DataAggregator:
    """
    Runs the aggregate query catalog over one immutable snapshot of cleaned
    records. Channel totals are computed once and shared by every
    percentage-of-total calculation.
    """

    def __init__(self, records: Iterable[SalesRecord]):
        """
        Initialize the aggregator.

        Args:
            records (iterable): Cleaned SalesRecord objects
        """
        self.records: Tuple[SalesRecord, ...] = tuple(records)
        self.retail_total = sum((_amount(r.retail_sales) for r in self.records), ZERO)
        self.warehouse_total = sum((_amount(r.warehouse_sales) for r in self.records), ZERO)
        logger.info(
            f"DataAggregator initialized with {len(self.records):,} records "
            f"(retail total {self.retail_total:,.2f}, warehouse total {self.warehouse_total:,.2f})"
        )

    def _group(self, key_func: Callable[[SalesRecord], Hashable],
               records: Optional[Iterable[SalesRecord]] = None) -> Dict[Hashable, List[SalesRecord]]:
        groups = defaultdict(list)
        for record in self.records if records is None else records:
            groups[key_func(record)].append(record)
        return groups

    @staticmethod
    def _retail_sum(records: Sequence[SalesRecord]) -> Decimal:
        return sum((_amount(r.retail_sales) for r in records), ZERO)

    @staticmethod
    def _warehouse_sum(records: Sequence[SalesRecord]) -> Decimal:
        return sum((_amount(r.warehouse_sales) for r in records), ZERO)

    # ------------------------------------------------------------------
    # Channel analysis
    # ------------------------------------------------------------------

    def channel_split(self) -> List[Row]:
        """Retail vs warehouse revenue and their share of the combined total."""
        combined = self.retail_total + self.warehouse_total
        return [{
            'retail_revenue': round2(self.retail_total),
            'warehouse_revenue': round2(self.warehouse_total),
            'retail_pct': round2(percent(self.retail_total, combined)),
            'warehouse_pct': round2(percent(self.warehouse_total, combined)),
            'retail_transactions': sum(1 for r in self.records if _is_positive(r.retail_sales)),
            'warehouse_transactions': sum(1 for r in self.records if _is_positive(r.warehouse_sales)),
        }]

    def channel_averages(self) -> List[Row]:
        """Average amount per row for each channel, over rows with a positive amount."""
        rows = []
        for channel, attr in (('Retail', 'retail_sales'), ('Warehouse', 'warehouse_sales')):
            amounts = [getattr(r, attr) for r in self.records if _is_positive(getattr(r, attr))]
            rows.append({
                'channel': channel,
                'avg_transaction': round2(safe_divide(sum(amounts, ZERO), len(amounts))),
                'num_transactions': len(amounts),
            })
        return rows

    def category_channel_split(self, core_item_types: Sequence[str] = CORE_ITEM_TYPES) -> List[Row]:
        """Retail and warehouse revenue per core category, with the warehouse share."""
        core = [r for r in self.records if r.item_type in core_item_types]
        rows = []
        for item_type, group in self._group(lambda r: r.item_type, core).items():
            retail = self._retail_sum(group)
            warehouse = self._warehouse_sum(group)
            rows.append({
                'item_type': item_type,
                'retail_revenue': round2(retail),
                'warehouse_revenue': round2(warehouse),
                'warehouse_pct': round2(percent(warehouse, retail + warehouse)),
            })
        return sort_desc(rows, 'warehouse_revenue', 'item_type')

    # ------------------------------------------------------------------
    # Category analysis
    # ------------------------------------------------------------------

    def category_breakdown(self, core_item_types: Sequence[str] = CORE_ITEM_TYPES) -> List[Row]:
        """Revenue of the core categories and their share of core revenue only."""
        core = [r for r in self.records if r.item_type in core_item_types]
        core_total = self._retail_sum(core)
        rows = []
        for item_type, group in self._group(lambda r: r.item_type, core).items():
            revenue = self._retail_sum(group)
            rows.append({
                'item_type': item_type,
                'total_revenue': round2(revenue),
                'pct_of_core': round2(percent(revenue, core_total)),
            })
        return sort_desc(rows, 'total_revenue', 'item_type')

    def category_efficiency(self) -> List[Row]:
        """Revenue, distinct products and revenue per product for every item type."""
        rows = []
        for item_type, group in self._group(lambda r: r.item_type).items():
            revenue = self._retail_sum(group)
            num_products = len({r.item_code for r in group})
            rows.append({
                'item_type': item_type,
                'total_revenue': round2(revenue),
                'pct_of_total': round2(percent(revenue, self.retail_total)),
                'num_products': num_products,
                'revenue_per_product': round2(safe_divide(revenue, num_products)),
            })
        return sort_desc(rows, 'total_revenue', 'item_type')

    # ------------------------------------------------------------------
    # Product analysis
    # ------------------------------------------------------------------

    def top_products_by_channel(self, channel: str = 'retail', limit: int = 10) -> List[Row]:
        """
        Best-selling products for one channel.

        Retail ranks every row by retail sales; warehouse only counts rows that
        had warehouse sales.
        """
        if channel not in CHANNELS:
            raise ValueError(f"Unknown channel '{channel}', expected one of {CHANNELS}")

        product_key = lambda r: (r.item_description, r.item_type)
        rows = []
        if channel == 'retail':
            for (description, item_type), group in self._group(product_key).items():
                rows.append({
                    'item_description': description,
                    'item_type': item_type,
                    'total_revenue': round2(self._retail_sum(group)),
                    'num_transactions': len(group),
                })
            metric = 'total_revenue'
        else:
            selling = [r for r in self.records if _is_positive(r.warehouse_sales)]
            for (description, item_type), group in self._group(product_key, selling).items():
                rows.append({
                    'item_description': description,
                    'item_type': item_type,
                    'warehouse_revenue': round2(self._warehouse_sum(group)),
                    'num_orders': len(group),
                })
            metric = 'warehouse_revenue'

        return sort_desc(rows, metric, 'item_description', 'item_type')[:limit]

    def wholesale_ratio(self, threshold: Decimal = Decimal(1000), limit: int = 20) -> List[Row]:
        """
        Products sold mostly through the warehouse channel.

        Only rows with sales in both channels count, and only products whose
        retail revenue exceeds ``threshold`` are kept.
        """
        both = [r for r in self.records if _is_positive(r.retail_sales) and _is_positive(r.warehouse_sales)]
        rows = []
        for (description, item_type), group in self._group(
                lambda r: (r.item_description, r.item_type), both).items():
            retail = self._retail_sum(group)
            if retail <= threshold:
                continue
            warehouse = self._warehouse_sum(group)
            rows.append({
                'item_description': description,
                'item_type': item_type,
                'retail_rev': round2(retail),
                'warehouse_rev': round2(warehouse),
                'wholesale_ratio': round2(safe_divide(warehouse, retail)),
            })
        return sort_desc(rows, 'wholesale_ratio', 'item_description', 'item_type')[:limit]

    def revenue_concentration_tiers(self) -> List[Row]:
        """Share of revenue held by the top 10, 11-50, 51-100 and remaining products."""
        product_rows = [
            {'item_description': description, 'revenue': self._retail_sum(group)}
            for description, group in self._group(lambda r: r.item_description).items()
        ]
        ranked = sort_desc(product_rows, 'revenue', 'item_description')
        total = sum((row['revenue'] for row in ranked), ZERO)

        tiers: Dict[str, Dict[str, Any]] = {}
        for rank, row in enumerate(ranked, start=1):
            label = self._tier_for_rank(rank)
            tier = tiers.setdefault(label, {'num_products': 0, 'revenue': ZERO})
            tier['num_products'] += 1
            tier['revenue'] += row['revenue']

        rows = [{
            'product_tier': label,
            'num_products': tier['num_products'],
            'tier_revenue': round2(tier['revenue']),
            'pct_of_total': round2(percent(tier['revenue'], total)),
        } for label, tier in tiers.items()]
        return sort_desc(rows, 'tier_revenue', 'product_tier')

    @staticmethod
    def _tier_for_rank(rank: int) -> str:
        for label, upper in REVENUE_TIERS:
            if upper is None or rank <= upper:
                return label
        return REVENUE_TIERS[-1][0]

    # ------------------------------------------------------------------
    # Supplier analysis
    # ------------------------------------------------------------------

    def top_suppliers(self, limit: int = 10) -> List[Row]:
        rows = []
        for supplier, group in self._group(lambda r: r.supplier).items():
            revenue = self._retail_sum(group)
            num_products = len({r.item_code for r in group})
            rows.append({
                'supplier': supplier,
                'total_revenue': round2(revenue),
                'num_products': num_products,
                'num_transactions': len(group),
                'revenue_per_product': round2(safe_divide(revenue, num_products)),
            })
        return sort_desc(rows, 'total_revenue', 'supplier')[:limit]

    def supplier_concentration(self, limit: int = 15) -> List[Row]:
        """
        Each supplier's share of total revenue with a running cumulative share.

        Suppliers with equal revenue share one cumulative value covering all
        of them, like a SQL window ordered by revenue.
        """
        revenues = [
            {'supplier': supplier, 'revenue': self._retail_sum(group)}
            for supplier, group in self._group(lambda r: r.supplier).items()
        ]
        ranked = sort_desc(revenues, 'revenue', 'supplier')

        rows = []
        cumulative = ZERO
        index = 0
        while index < len(ranked):
            peers_end = index
            while peers_end < len(ranked) and ranked[peers_end]['revenue'] == ranked[index]['revenue']:
                peers_end += 1
            peers = ranked[index:peers_end]

            shares = [percent(peer['revenue'], self.retail_total) for peer in peers]
            if shares[0] is not None:
                cumulative += sum(shares, ZERO)
            for peer, share in zip(peers, shares):
                rows.append({
                    'supplier': peer['supplier'],
                    'supplier_revenue': round2(peer['revenue']),
                    'pct_of_total': round2(share),
                    'cumulative_pct': None if share is None else round2(cumulative),
                })
            index = peers_end

        return rows[:limit]

    def supplier_diversification(self, min_products: int = 50, limit: int = 15) -> List[Row]:
        """Suppliers with more than ``min_products`` products, broadest portfolio first."""
        rows = []
        for supplier, group in self._group(lambda r: r.supplier).items():
            num_products = len({r.item_code for r in group})
            if num_products <= min_products:
                continue
            categories = sorted({r.item_type for r in group if r.item_type is not None})
            rows.append({
                'supplier': supplier,
                'num_categories': len(categories),
                'num_products': num_products,
                'total_revenue': round2(self._retail_sum(group)),
                'categories_offered': ', '.join(categories),
            })
        rows.sort(key=lambda row: (-row['num_products'], row['supplier'] or ''))
        return rows[:limit]

    # ------------------------------------------------------------------
    # Temporal analysis
    # ------------------------------------------------------------------

    def monthly_pattern(self, year: int = 2019) -> List[Row]:
        """Revenue, row count and average row value per month of one year."""
        in_year = [r for r in self.records if r.year == year]
        rows = []
        for month, group in self._group(lambda r: r.month, in_year).items():
            amounts = [r.retail_sales for r in group if r.retail_sales is not None]
            rows.append({
                'month': month,
                'monthly_revenue': round2(sum(amounts, ZERO)),
                'num_transactions': len(group),
                'avg_transaction_value': round2(safe_divide(sum(amounts, ZERO), len(amounts))),
            })
        return sorted(rows, key=lambda row: row['month'])

    def yearly_revenue(self) -> List[Row]:
        rows = [
            {'year': year, 'total_retail_sales': round2(self._retail_sum(group))}
            for year, group in self._group(lambda r: r.year).items()
        ]
        return sorted(rows, key=lambda row: row['year'])

    def monthly_revenue(self) -> List[Row]:
        rows = [
            {
                'year': year,
                'month': month,
                'monthly_revenue': round2(self._retail_sum(group)),
                'num_transactions': len(group),
            }
            for (year, month), group in self._group(lambda r: (r.year, r.month)).items()
        ]
        return sorted(rows, key=lambda row: (row['year'], row['month']))

    def average_monthly_revenue(self) -> List[Row]:
        """Mean of each calendar month's yearly revenue, over the years that have it."""
        per_month = defaultdict(list)
        for (year, month), group in self._group(lambda r: (r.year, r.month)).items():
            per_month[month].append(self._retail_sum(group))

        rows = [
            {
                'month': month,
                'avg_revenue': round2(safe_divide(sum(totals, ZERO), len(totals))),
                'years_with_data': len(totals),
            }
            for month, totals in per_month.items()
        ]
        return sorted(rows, key=lambda row: row['month'])

    # ------------------------------------------------------------------

    def run_all(self,
                top_products_limit: int = 10,
                top_suppliers_limit: int = 10,
                concentration_limit: int = 15,
                monthly_pattern_year: int = 2019,
                wholesale_threshold: Decimal = Decimal(1000),
                wholesale_limit: int = 20,
                diversification_min_products: int = 50,
                diversification_limit: int = 15,
                core_item_types: Sequence[str] = CORE_ITEM_TYPES) -> Dict[str, List[Row]]:
        """
        Run the whole catalog.

        Returns:
            dict: Table name -> ordered result rows
        """
        logger.info("Running aggregate query catalog...")
        tables = {
            'channel_split': self.channel_split(),
            'channel_averages': self.channel_averages(),
            'category_breakdown': self.category_breakdown(core_item_types),
            'category_efficiency': self.category_efficiency(),
            'category_channel_split': self.category_channel_split(core_item_types),
            'top_products_retail': self.top_products_by_channel('retail', top_products_limit),
            'top_products_warehouse': self.top_products_by_channel('warehouse', top_products_limit),
            'top_suppliers': self.top_suppliers(top_suppliers_limit),
            'supplier_concentration': self.supplier_concentration(concentration_limit),
            'monthly_pattern': self.monthly_pattern(monthly_pattern_year),
            'yearly_revenue': self.yearly_revenue(),
            'monthly_revenue': self.monthly_revenue(),
            'average_monthly_revenue': self.average_monthly_revenue(),
            'wholesale_ratio': self.wholesale_ratio(Decimal(wholesale_threshold), wholesale_limit),
            'supplier_diversification': self.supplier_diversification(
                diversification_min_products, diversification_limit),
            'revenue_concentration_tiers': self.revenue_concentration_tiers(),
        }
        for name, rows in tables.items():
            logger.debug(f"{name}: {len(rows)} rows")
        logger.info(f"Aggregation complete. {len(tables)} tables from {len(self.records):,} records")
        return tables

    def get_aggregation_summary(self) -> Dict[str, Any]:
        """Get a summary of the aggregated snapshot."""
        return {
            'records_processed': len(self.records),
            'unique_products': len({r.item_code for r in self.records}),
            'unique_suppliers': len({r.supplier for r in self.records}),
            'item_types': len({r.item_type for r in self.records}),
            'retail_total': str(round2(self.retail_total)),
            'warehouse_total': str(round2(self.warehouse_total)),
        }
