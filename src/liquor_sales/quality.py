# ========================
# src/liquor_sales/quality.py
# ========================

"""
Data Quality Module

Completeness and coverage statistics over a loaded record collection. Runs
before and after cleaning so the two profiles can be compared.
"""

import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import CoverageCell, SalesRecord, is_missing

logger = logging.getLogger(__name__)

CHECKED_FIELDS = ('retail_sales', 'supplier', 'item_type')


class QualityChecker:
    """
    Read-only completeness checks over a collection of SalesRecord.
    The collection is copied into a tuple and never modified.
    """

    def __init__(self, records: Iterable[SalesRecord]):
        self.records: Tuple[SalesRecord, ...] = tuple(records)

    def row_count(self) -> int:
        return len(self.records)

    def count_missing(self, field: str) -> int:
        """Count records whose ``field`` is null or empty text."""
        self._check_field(field)
        return sum(1 for record in self.records if is_missing(getattr(record, field)))

    def rows_missing(self, field: str, limit: int = 10) -> List[SalesRecord]:
        """Return up to ``limit`` records with ``field`` missing, in file order."""
        self._check_field(field)
        found = []
        for record in self.records:
            if len(found) >= limit:
                break
            if is_missing(getattr(record, field)):
                found.append(record)
        return found

    def missing_summary(self) -> Dict[str, int]:
        summary = {'total_rows': self.row_count()}
        for field in CHECKED_FIELDS:
            summary[f'missing_{field}'] = self.count_missing(field)
        return summary

    def coverage_grid(self, years: Iterable[int]) -> List[CoverageCell]:
        """
        Left-join the full ``years x 1..12`` calendar against the (year, month)
        pairs present in the data, ordered by year then month.
        """
        observed = {(record.year, record.month) for record in self.records}
        return [
            CoverageCell(year=year, month=month, has_data=(year, month) in observed)
            for year in sorted(set(years))
            for month in range(1, 13)
        ]

    def coverage_summary(self, years: Iterable[int]) -> Dict[int, List[int]]:
        """Months with data, per year."""
        summary: Dict[int, List[int]] = {}
        for cell in self.coverage_grid(years):
            months = summary.setdefault(cell.year, [])
            if cell.has_data:
                months.append(cell.month)
        return summary

    def year_range(self) -> Optional[Tuple[int, int]]:
        if not self.records:
            return None
        years = [record.year for record in self.records]
        return min(years), max(years)

    def item_type_counts(self) -> List[Dict[str, Any]]:
        """Number of records per item type, most frequent first."""
        counts = Counter(record.item_type for record in self.records)
        rows = [{'item_type': item_type, 'num_records': count} for item_type, count in counts.items()]
        rows.sort(key=lambda row: (-row['num_records'], row['item_type'] or ''))
        return rows

    def profile(self, years: Sequence[int]) -> Dict[str, Any]:
        """Bundle of every check, as plain data for logging and export."""
        grid = self.coverage_grid(years)
        months_with_data = sum(1 for cell in grid if cell.has_data)
        year_range = self.year_range()

        profile = {
            **self.missing_summary(),
            'year_range': list(year_range) if year_range else None,
            'coverage': {str(year): months for year, months in self.coverage_summary(years).items()},
            'months_with_data': months_with_data,
            'months_missing': len(grid) - months_with_data,
            'item_type_counts': self.item_type_counts(),
        }

        logger.info(
            f"Quality profile: {profile['total_rows']:,} rows, "
            f"missing retail_sales={profile['missing_retail_sales']}, "
            f"supplier={profile['missing_supplier']}, item_type={profile['missing_item_type']}, "
            f"coverage {months_with_data}/{len(grid)} months"
        )
        return profile

    @staticmethod
    def _check_field(field: str) -> None:
        if field not in CHECKED_FIELDS:
            raise ValueError(f"Unsupported field '{field}', expected one of {CHECKED_FIELDS}")
