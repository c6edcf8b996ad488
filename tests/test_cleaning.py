# ========================
# tests/test_cleaning.py
# ========================

import unittest
import tempfile
import os
import sys
from decimal import Decimal

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.liquor_sales.cleaning import DataCleaner
from src.liquor_sales.ingestion import load_records
from src.liquor_sales.models import CleaningError, SalesRecord
from src.liquor_sales.quality import QualityChecker
from src.utils.data_generator import DataGenerator


def make_record(**fields):
    values = {
        'year': 2019, 'month': 1, 'supplier': 'SAZERAC CO', 'item_code': '2001',
        'item_description': 'FIREBALL 50ML', 'item_type': 'LIQUOR',
        'retail_sales': '3.10', 'retail_transfers': '0', 'warehouse_sales': '0',
    }
    values.update(fields)
    return SalesRecord(**values)


class TestDataCleaner(unittest.TestCase):

    def setUp(self):
        self.records = [
            make_record(),
            # no retail sales and no supplier: deleted, never counted as a supplier fill
            make_record(item_code='BC', item_description='RMS ITEM', supplier='', retail_sales=None),
            make_record(item_code='101664', item_description='RAR MADEIRA M/BUAL - 750ML', supplier=''),
            make_record(item_code='9130', item_description='ICE - 10LB', supplier=None, item_type='STR_SUPPLIES'),
            make_record(item_code='347939', item_description='BARTENURA BAROLO - 750ML', item_type=None),
            make_record(item_code='777', item_description='MYSTERY RED - 750ML', item_type=''),
        ]
        self.cleaner = DataCleaner(item_type_overrides={
            '347939': 'WINE',
            'MYSTERY RED - 750ML': 'WINE',
        })

    def test_clean_reports_rows_affected_per_rule(self):
        cleaned, report = self.cleaner.clean(self.records)

        self.assertEqual(report.affected_counts(), {'delete': 1, 'supplier_fill': 2, 'item_type_fill': 2})
        self.assertEqual(report.rows_before, 6)
        self.assertEqual(report.rows_after, 5)
        self.assertEqual(len(cleaned), 5)
        self.assertEqual(report.total_affected, 5)

    def test_cleaned_records_hold_invariants(self):
        cleaned, _ = self.cleaner.clean(self.records)

        checker = QualityChecker(cleaned)
        self.assertEqual(checker.count_missing('retail_sales'), 0)
        self.assertEqual(checker.count_missing('supplier'), 0)
        self.assertEqual(checker.count_missing('item_type'), 0)

        by_code = {r.item_code: r for r in cleaned}
        self.assertNotIn('BC', by_code)
        self.assertEqual(by_code['101664'].supplier, 'UNKNOWN')
        self.assertEqual(by_code['9130'].supplier, 'UNKNOWN')
        self.assertEqual(by_code['347939'].item_type, 'WINE')
        self.assertEqual(by_code['777'].item_type, 'WINE')
        self.assertEqual(by_code['2001'].retail_sales, Decimal('3.10'))

    def test_clean_is_idempotent(self):
        cleaned, _ = self.cleaner.clean(self.records)
        cleaned_again, report = self.cleaner.clean(cleaned)

        self.assertEqual(cleaned_again, cleaned)
        self.assertEqual(report.affected_counts(), {'delete': 0, 'supplier_fill': 0, 'item_type_fill': 0})

    def test_clean_does_not_modify_input(self):
        before = list(self.records)
        self.cleaner.clean(self.records)

        self.assertEqual(self.records, before)
        self.assertEqual(self.records[2].supplier, '')

    def test_untouched_records_are_kept_as_is(self):
        cleaned, _ = self.cleaner.clean(self.records)
        self.assertIs(cleaned[0], self.records[0])

    def test_item_code_override_wins_over_description(self):
        cleaner = DataCleaner(item_type_overrides={'777': 'BEER', 'MYSTERY RED - 750ML': 'WINE'})
        cleaned, _ = cleaner.clean([make_record(item_code='777', item_description='MYSTERY RED - 750ML',
                                                item_type=None)])
        self.assertEqual(cleaned[0].item_type, 'BEER')

    def test_fallback_used_when_no_override(self):
        cleaner = DataCleaner(item_type_fallback='WINE')
        cleaned, report = cleaner.clean([make_record(item_type='')])

        self.assertEqual(cleaned[0].item_type, 'WINE')
        self.assertEqual(report.item_type_fill, 1)

    def test_missing_override_raises_cleaning_error(self):
        cleaner = DataCleaner()
        with self.assertRaises(CleaningError):
            cleaner.clean([make_record(), make_record(item_type=None)])

    def test_deleted_row_is_not_checked_for_item_type(self):
        """Rows removed by the first rule never reach the item type rule."""
        cleaner = DataCleaner()
        cleaned, report = cleaner.clean([make_record(retail_sales=None, item_type=None)])

        self.assertEqual(cleaned, [])
        self.assertEqual(report.affected_counts(), {'delete': 1, 'supplier_fill': 0, 'item_type_fill': 0})

    def test_custom_unknown_supplier_label(self):
        cleaner = DataCleaner(unknown_supplier='NOT LISTED')
        cleaned, _ = cleaner.clean([make_record(supplier='')])
        self.assertEqual(cleaned[0].supplier, 'NOT LISTED')

    def test_whitespace_text_is_not_missing(self):
        """Only null and empty text are filled; whitespace-only text is kept as it is."""
        record = make_record(supplier='  ', item_type=' ')
        cleaned, report = DataCleaner().clean([record])

        self.assertIs(cleaned[0], record)
        self.assertEqual(report.total_affected, 0)

    def test_empty_override_is_rejected(self):
        for overrides in ({'2001': ''}, {'FIREBALL 50ML': None}):
            with self.subTest(overrides=overrides):
                with self.assertRaises(ValueError):
                    DataCleaner(item_type_overrides=overrides)

    def test_empty_fallback_is_rejected(self):
        with self.assertRaises(ValueError):
            DataCleaner(item_type_fallback='')

    def test_filled_item_types_survive_a_second_pass(self):
        cleaner = DataCleaner(item_type_overrides={'2001': 'LIQUOR'})
        cleaned, _ = cleaner.clean([make_record(item_type='')])
        cleaned_again, report = cleaner.clean(cleaned)

        self.assertEqual(cleaned[0].item_type, 'LIQUOR')
        self.assertEqual(report.total_affected, 0)
        self.assertEqual(cleaned_again, cleaned)


class TestCleaningGeneratedDataset(unittest.TestCase):
    """A generated file with the reference defect counts cleans to the reference report."""

    def test_reference_counts(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'sales.csv')
            stats = DataGenerator(seed=42).generate_dataset(path, num_rows=2000)
            records = load_records(path)

        checker = QualityChecker(records)
        for field in ('retail_sales', 'supplier', 'item_type'):
            self.assertGreater(checker.count_missing(field), 0)

        cleaner = DataCleaner(item_type_overrides=stats['item_type_overrides'])
        cleaned, report = cleaner.clean(records)

        self.assertEqual(report.affected_counts(), {'delete': 3, 'supplier_fill': 167, 'item_type_fill': 1})
        self.assertEqual(len(cleaned), stats['expected_rows_after_cleaning'])

        after = QualityChecker(cleaned)
        for field in ('retail_sales', 'supplier', 'item_type'):
            self.assertEqual(after.count_missing(field), 0)

        _, second = cleaner.clean(cleaned)
        self.assertEqual(second.total_affected, 0)


if __name__ == '__main__':
    unittest.main()
