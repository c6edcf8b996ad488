# ========================
# tests/test_quality.py
# ========================

import unittest
import tempfile
import os
import sys

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.liquor_sales.ingestion import load_records
from src.liquor_sales.models import SalesRecord
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


class TestQualityChecker(unittest.TestCase):

    def setUp(self):
        self.records = [
            make_record(year=2017, month=6),
            make_record(year=2017, month=6, supplier=''),
            make_record(year=2017, month=7, supplier=None, item_type=''),
            make_record(year=2019, month=1, retail_sales=None),
            make_record(year=2019, month=11, item_type=None),
        ]
        self.checker = QualityChecker(self.records)

    def test_count_missing_counts_null_and_empty(self):
        self.assertEqual(self.checker.count_missing('retail_sales'), 1)
        self.assertEqual(self.checker.count_missing('supplier'), 2)
        self.assertEqual(self.checker.count_missing('item_type'), 2)

    def test_whitespace_text_is_not_counted_missing(self):
        checker = QualityChecker([make_record(supplier=' '), make_record(item_type='  ')])
        self.assertEqual(checker.count_missing('supplier'), 0)
        self.assertEqual(checker.count_missing('item_type'), 0)

    def test_count_missing_rejects_other_fields(self):
        with self.assertRaises(ValueError):
            self.checker.count_missing('warehouse_sales')

    def test_row_count_and_summary(self):
        self.assertEqual(self.checker.row_count(), 5)
        self.assertEqual(self.checker.missing_summary(), {
            'total_rows': 5,
            'missing_retail_sales': 1,
            'missing_supplier': 2,
            'missing_item_type': 2,
        })

    def test_rows_missing_returns_samples_in_order(self):
        rows = self.checker.rows_missing('supplier', limit=1)
        self.assertEqual(len(rows), 1)
        self.assertIs(rows[0], self.records[1])
        self.assertEqual(len(self.checker.rows_missing('supplier')), 2)

    def test_coverage_grid_is_full_calendar_in_order(self):
        grid = self.checker.coverage_grid({2019, 2017})

        self.assertEqual(len(grid), 24)
        self.assertEqual([(c.year, c.month) for c in grid[:2]], [(2017, 1), (2017, 2)])
        self.assertEqual((grid[-1].year, grid[-1].month), (2019, 12))
        with_data = [(c.year, c.month) for c in grid if c.has_data]
        self.assertEqual(with_data, [(2017, 6), (2017, 7), (2019, 1), (2019, 11)])

    def test_coverage_grid_includes_years_without_data(self):
        grid = self.checker.coverage_grid([2018])
        self.assertEqual(len(grid), 12)
        self.assertFalse(any(cell.has_data for cell in grid))

    def test_year_range_and_item_type_counts(self):
        self.assertEqual(self.checker.year_range(), (2017, 2019))
        self.assertIsNone(QualityChecker([]).year_range())

        counts = self.checker.item_type_counts()
        self.assertEqual(counts[0], {'item_type': 'LIQUOR', 'num_records': 3})

    def test_checker_does_not_modify_records(self):
        before = list(self.records)
        self.checker.profile([2017, 2019])
        self.assertEqual(self.records, before)

    def test_profile_bundles_checks(self):
        profile = self.checker.profile([2017, 2018, 2019])

        self.assertEqual(profile['total_rows'], 5)
        self.assertEqual(profile['missing_supplier'], 2)
        self.assertEqual(profile['months_with_data'], 4)
        self.assertEqual(profile['months_missing'], 32)
        self.assertEqual(profile['coverage']['2017'], [6, 7])
        self.assertEqual(profile['coverage']['2018'], [])
        self.assertEqual(profile['year_range'], [2017, 2019])


class TestReferenceCoverage(unittest.TestCase):
    """A generated file with the reference calendar has 24 of 48 months."""

    def test_reference_calendar(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'sales.csv')
            DataGenerator(seed=7).generate_dataset(path, num_rows=300)
            checker = QualityChecker(load_records(path))

        grid = checker.coverage_grid({2017, 2018, 2019, 2020})
        self.assertEqual(sum(1 for c in grid if c.has_data), 24)
        self.assertEqual(sum(1 for c in grid if not c.has_data), 24)

        summary = checker.coverage_summary({2017, 2018, 2019, 2020})
        self.assertEqual(len(summary[2017]), 7)
        self.assertEqual(summary[2018], [1, 2])
        self.assertEqual(summary[2019], list(range(1, 12)))
        self.assertEqual(len(summary[2020]), 4)

        self.assertEqual(checker.count_missing('retail_sales'), 3)
        self.assertEqual(checker.count_missing('supplier'), 167)
        self.assertEqual(checker.count_missing('item_type'), 1)


if __name__ == '__main__':
    unittest.main()
