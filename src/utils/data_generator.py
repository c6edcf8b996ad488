# ========================
# src/utils/data_generator.py
# ========================

"""
Data Generation Utilities

Creates sample sales files in the reference column layout, with a known
number of rows missing retail sales, supplier and item type.
"""

import csv
import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..liquor_sales.models import REQUIRED_COLUMNS

logger = logging.getLogger(__name__)

# Months with data in the reference dataset
REFERENCE_COVERAGE = {
    2017: [6, 7, 8, 9, 10, 11, 12],
    2018: [1, 2],
    2019: [1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11],
    2020: [1, 3, 7, 9],
}


class DataGenerator:
    """
    Generates realistic sample sales files with controlled defects.
    """

    SUPPLIERS = [
        "E & J GALLO WINERY", "DIAGEO NORTH AMERICA INC", "CONSTELLATION BRANDS",
        "ANHEUSER BUSCH INC", "JIM BEAM BRANDS CO", "CROWN IMPORTS",
        "MILLER BREWING COMPANY", "SAZERAC CO", "BACARDI USA INC", "PERNOD RICARD USA LLC",
    ]

    # item type -> (weight, description stems, typical retail amount)
    ITEM_TYPES = {
        "WINE": (0.6, ["CHARD", "CAB SAUV", "PINOT NOIR", "MERLOT", "ROSE", "PROSECCO"], 4.0),
        "LIQUOR": (0.22, ["VODKA", "BOURBON", "RUM", "GIN", "TEQUILA", "WHISKEY"], 12.0),
        "BEER": (0.14, ["LAGER 6PK", "IPA 12PK", "STOUT 4PK", "PILSNER 24PK"], 9.0),
        "KEGS": (0.02, ["1/2 KEG", "1/6 KEG"], 0.0),
        "NON-ALCOHOL": (0.02, ["TONIC 1L", "CLUB SODA", "GINGER BEER"], 2.0),
    }

    def __init__(self, seed: Optional[int] = None, num_products: int = 200):
        """
        Initialize data generator.

        Args:
            seed (int): Random seed for reproducible data generation
            num_products (int): Size of the generated product catalog
        """
        self._random = random.Random(seed)
        self.products = self._build_catalog(num_products)
        logger.info(f"DataGenerator initialized with seed: {seed}, {len(self.products)} products")

    def _build_catalog(self, num_products: int) -> List[Dict[str, str]]:
        item_types = list(self.ITEM_TYPES)
        weights = [self.ITEM_TYPES[t][0] for t in item_types]
        products = []
        for index in range(num_products):
            item_type = self._random.choices(item_types, weights=weights)[0]
            stem = self._random.choice(self.ITEM_TYPES[item_type][1])
            supplier = self._random.choice(self.SUPPLIERS)
            products.append({
                'item_code': str(100000 + index),
                'description': f"{supplier.split()[0]} {stem} {index:03d}",
                'item_type': item_type,
                'supplier': supplier,
            })
        return products

    def generate_dataset(self,
                         file_path: str,
                         num_rows: int,
                         missing_retail_sales: int = 3,
                         missing_suppliers: int = 167,
                         missing_item_types: int = 1,
                         coverage: Optional[Dict[int, List[int]]] = None) -> Dict[str, Any]:
        """
        Generate a sales file with a known number of defective rows.

        Every (year, month) in ``coverage`` gets at least one row when
        ``num_rows`` is at least the number of covered months. Each defect is
        placed on its own row, so the expected cleaning counts equal the
        requested counts.

        Args:
            file_path (str): Output CSV file path
            num_rows (int): Number of rows to generate
            missing_retail_sales (int): Rows with a blank retail sales amount
            missing_suppliers (int): Rows with a blank supplier
            missing_item_types (int): Rows with a blank item type
            coverage (dict): Year -> months that get data

        Returns:
            dict: Generation statistics, including the item type overrides
                  that repair the blank item types
        """
        coverage = coverage or REFERENCE_COVERAGE
        cells = [(year, month) for year in sorted(coverage) for month in sorted(coverage[year])]
        total_defects = missing_retail_sales + missing_suppliers + missing_item_types
        if total_defects > num_rows:
            raise ValueError(f"Cannot place {total_defects} defects in {num_rows} rows")

        logger.info(f"Generating {num_rows:,} rows over {len(cells)} months "
                    f"with {total_defects} defective rows...")

        defect_rows = self._random.sample(range(num_rows), total_defects)
        no_retail = set(defect_rows[:missing_retail_sales])
        no_supplier = set(defect_rows[missing_retail_sales:missing_retail_sales + missing_suppliers])
        no_item_type = set(defect_rows[missing_retail_sales + missing_suppliers:])

        stats = {
            'total_rows': num_rows,
            'expected_rows_after_cleaning': num_rows - missing_retail_sales,
            'missing_retail_sales': missing_retail_sales,
            'missing_suppliers': missing_suppliers,
            'missing_item_types': missing_item_types,
            'coverage': {year: sorted(months) for year, months in coverage.items()},
            'item_type_overrides': {},
        }

        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(REQUIRED_COLUMNS)

            for i in range(num_rows):
                year, month = cells[i % len(cells)]
                product = self._random.choice(self.products)
                row = self._generate_single_record(year, month, product)

                if i in no_retail:
                    row[6] = ''
                if i in no_supplier:
                    row[2] = ''
                if i in no_item_type:
                    row[5] = ''
                    stats['item_type_overrides'][product['item_code']] = product['item_type']

                writer.writerow(row)

                if (i + 1) % 10000 == 0:
                    logger.debug(f"Generated {i + 1:,} records")

        logger.info(f"Dataset generated: {file_path}")
        return stats

    def _generate_single_record(self, year: int, month: int, product: Dict[str, str]) -> List[Any]:
        typical = self.ITEM_TYPES[product['item_type']][2]
        retail = round(self._random.uniform(0, typical * 2), 2) if typical else 0.0
        transfers = round(retail * self._random.uniform(0.5, 1.5), 2)
        warehouse = round(self._random.uniform(0, typical * 8), 2) if self._random.random() < 0.6 else 0.0
        return [
            year, month, product['supplier'], product['item_code'], product['description'],
            product['item_type'], f"{retail:.2f}", f"{transfers:.2f}", f"{warehouse:.2f}",
        ]
