# ========================
# tests/test_ingestion.py
# ========================

import unittest
import tempfile
import os
import sys
import csv
from decimal import Decimal

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.liquor_sales.ingestion import CSVReader, load_records, normalize_column
from src.liquor_sales.models import FormatError, ParseError

HEADER = ['Year', 'Month', 'Supplier', 'Item Code', 'Item Description', 'Item Type',
          'Retail Sales', 'Retail Transfers', 'Warehouse Sales']


class TestDataIngestion(unittest.TestCase):
    """Test the CSV ingestion module."""

    def setUp(self):
        self.temp_files = []

    def tearDown(self):
        for path in self.temp_files:
            os.unlink(path)

    def _write_csv(self, rows):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False, newline='') as f:
            writer = csv.writer(f)
            writer.writerows(rows)
            self.temp_files.append(f.name)
            return f.name

    def test_load_records_in_file_order(self):
        """Rows become typed records, in the order they appear in the file."""
        path = self._write_csv([
            HEADER,
            ['2020', '1', 'REPUBLIC NATIONAL DISTRIBUTING CO', '100009', 'BOOTLEG RED - 750ML', 'WINE', '0', '0', '2'],
            ['2020', '1', 'PWSWN INC', '100024', 'MOMENT DE PLAISIR - 750ML', 'WINE', '0.82', '0', '4'],
            ['2017', '6', 'ANHEUSER BUSCH INC', '10001', 'BUD LIGHT 12OZ', 'BEER', '12.5', '1.25', '88.7'],
        ])

        records = load_records(path)

        self.assertEqual(len(records), 3)
        self.assertEqual([r.item_code for r in records], ['100009', '100024', '10001'])

        second = records[1]
        self.assertEqual(second.year, 2020)
        self.assertEqual(second.month, 1)
        self.assertEqual(second.supplier, 'PWSWN INC')
        self.assertEqual(second.item_type, 'WINE')
        self.assertEqual(second.retail_sales, Decimal('0.82'))
        self.assertEqual(second.warehouse_sales, Decimal('4'))

    def test_uppercase_header_is_accepted(self):
        """The reference file uses an upper case header."""
        path = self._write_csv([
            [name.upper() for name in HEADER],
            ['2019', '11', 'SAZERAC CO', '2001', 'FIREBALL 50ML', 'LIQUOR', '3.1', '0', '0'],
        ])

        records = load_records(path)
        self.assertEqual(records[0].supplier, 'SAZERAC CO')

    def test_blank_and_unparseable_retail_sales_load_as_missing(self):
        """Retail sales that cannot be read are kept as None for the cleaner to delete."""
        path = self._write_csv([
            HEADER,
            ['2017', '6', '', 'BC', 'RMS ITEM', '', '', '0', '0'],
            ['2017', '6', '', 'BC', 'COUPON', '', 'n/a', '0', '0'],
        ])

        records = load_records(path)

        self.assertIsNone(records[0].retail_sales)
        self.assertIsNone(records[1].retail_sales)
        self.assertEqual(records[0].supplier, '')

    def test_blank_warehouse_sales_is_none(self):
        path = self._write_csv([
            HEADER,
            ['2018', '2', 'CROWN IMPORTS', '23445', 'CORONA EXTRA 12PK', 'BEER', '104.5', '99', ''],
        ])

        records = load_records(path)
        self.assertIsNone(records[0].warehouse_sales)

    def test_missing_columns_raise_format_error(self):
        path = self._write_csv([
            HEADER[:-1],
            ['2018', '2', 'CROWN IMPORTS', '23445', 'CORONA EXTRA 12PK', 'BEER', '104.5', '99'],
        ])

        with self.assertRaises(FormatError) as ctx:
            load_records(path)
        self.assertEqual(ctx.exception.missing_columns, ['WAREHOUSE SALES'])

    def test_empty_file_raises_format_error(self):
        """A file without a header cannot be loaded."""
        path = self._write_csv([])

        reader = CSVReader(path)
        with self.assertRaises(FormatError):
            list(reader.read_in_chunks(chunk_size=10))

    def test_unparseable_month_raises_parse_error(self):
        path = self._write_csv([
            HEADER,
            ['2019', '1', 'SAZERAC CO', '2001', 'FIREBALL 50ML', 'LIQUOR', '3.1', '0', '0'],
            ['2019', '13', 'SAZERAC CO', '2001', 'FIREBALL 50ML', 'LIQUOR', '3.1', '0', '0'],
        ])

        with self.assertRaises(ParseError) as ctx:
            load_records(path)
        self.assertEqual(ctx.exception.line_number, 3)
        self.assertTrue(ctx.exception.errors)

    def test_unparseable_warehouse_sales_raises_parse_error(self):
        path = self._write_csv([
            HEADER,
            ['2019', '1', 'SAZERAC CO', '2001', 'FIREBALL 50ML', 'LIQUOR', '3.1', '0', 'lots'],
        ])

        with self.assertRaises(ParseError) as ctx:
            load_records(path)
        self.assertEqual(ctx.exception.line_number, 2)

    def test_csv_reader_chunked_processing(self):
        """CSVReader yields raw rows keyed by canonical column name, in chunks."""
        rows = [HEADER] + [
            ['2019', str(month), 'SAZERAC CO', '2001', 'FIREBALL 50ML', 'LIQUOR', '3.1', '0', '0']
            for month in range(1, 6)
        ]
        path = self._write_csv(rows)

        reader = CSVReader(path)
        chunks = list(reader.read_in_chunks(chunk_size=2))

        self.assertEqual([len(chunk) for chunk in chunks], [2, 2, 1])
        self.assertEqual(reader.header, HEADER)
        self.assertEqual(reader.rows_read, 5)
        self.assertEqual(chunks[0][0]['MONTH'], '1')
        self.assertEqual(chunks[0][0]['ITEM DESCRIPTION'], 'FIREBALL 50ML')

    def test_csv_reader_file_not_found(self):
        """Test CSVReader behavior with non-existent file."""
        reader = CSVReader("non_existent_file.csv")

        with self.assertRaises(FileNotFoundError):
            list(reader.read_in_chunks(chunk_size=10))

    def test_normalize_column(self):
        self.assertEqual(normalize_column(' Item  Code '), 'ITEM CODE')
        self.assertEqual(normalize_column('RETAIL SALES'), 'RETAIL SALES')
        self.assertEqual(normalize_column(None), '')


if __name__ == '__main__':
    unittest.main()
