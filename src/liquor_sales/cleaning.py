# ========================
# src/liquor_sales/cleaning.py
# ========================

"""
Data Cleaning Module

Applies the fixed, ordered cleaning rules to loaded records:

1. delete rows with no retail sales amount
2. label rows with an empty supplier as UNKNOWN
3. fill empty item types from a caller-supplied override mapping
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .models import UNKNOWN_SUPPLIER, CleaningError, CleaningReport, SalesRecord, is_missing

logger = logging.getLogger(__name__)


class DataCleaner:
    """
    Applies the cleaning rules to a record collection in one pass.
    Input records are never modified; repaired rows are new instances.
    """

    def __init__(self,
                 item_type_overrides: Optional[Dict[str, str]] = None,
                 item_type_fallback: Optional[str] = None,
                 unknown_supplier: str = UNKNOWN_SUPPLIER):
        """
        Initialize the data cleaner.

        Args:
            item_type_overrides (dict): Item code or item description -> item type
            item_type_fallback (str): Item type used when no override matches
            unknown_supplier (str): Label for rows without a supplier

        Raises:
            ValueError: an override, the fallback or the supplier label is empty
        """
        empty_keys = [key for key, value in (item_type_overrides or {}).items() if is_missing(value)]
        if empty_keys:
            raise ValueError(f"Item type overrides must not be empty: {empty_keys}")
        if item_type_fallback == '':
            raise ValueError("Item type fallback must be None or a non-empty item type")
        if is_missing(unknown_supplier):
            raise ValueError("Unknown supplier label must not be empty")

        self.item_type_overrides = dict(item_type_overrides or {})
        self.item_type_fallback = item_type_fallback
        self.unknown_supplier = unknown_supplier
        logger.info(
            f"DataCleaner initialized with {len(self.item_type_overrides)} item type overrides, "
            f"fallback={self.item_type_fallback!r}"
        )

    def clean(self, records: Iterable[SalesRecord]) -> Tuple[List[SalesRecord], CleaningReport]:
        """
        Run every rule over ``records`` and return the cleaned list with its report.

        Nothing is returned if a rule fails, so callers never see a partially
        cleaned collection.

        Raises:
            CleaningError: a record is missing its item type and no override
                           or fallback applies
        """
        report = CleaningReport()
        cleaned = []

        for record in records:
            report.rows_before += 1

            if record.retail_sales is None:
                report.delete += 1
                logger.debug(f"Deleting record without retail sales: {record.item_code} "
                             f"({record.year}-{record.month:02d})")
                continue

            updates = {}
            if is_missing(record.supplier):
                updates['supplier'] = self.unknown_supplier
                report.supplier_fill += 1

            if is_missing(record.item_type):
                updates['item_type'] = self._resolve_item_type(record)
                report.item_type_fill += 1

            cleaned.append(record.model_copy(update=updates) if updates else record)

        report.rows_after = len(cleaned)
        logger.info(
            f"Cleaning complete: {report.rows_before:,} -> {report.rows_after:,} rows, "
            f"affected {report.affected_counts()}"
        )
        return cleaned, report

    def _resolve_item_type(self, record: SalesRecord) -> str:
        """Look up the item type by item code, then by description, then fallback."""
        for key in (record.item_code, record.item_description):
            if key is not None and key in self.item_type_overrides:
                return self.item_type_overrides[key]

        if self.item_type_fallback is not None:
            logger.warning(
                f"No item type override for {record.item_code} ({record.item_description}); "
                f"using fallback {self.item_type_fallback!r}"
            )
            return self.item_type_fallback

        message = (f"Record {record.item_code} ({record.item_description}) has no item type "
                   f"and no override is configured for it")
        logger.error(message)
        raise CleaningError(message)
