# ========================
# src/liquor_sales/storage.py
# ========================

"""
Data Storage Module

Writes the aggregate result tables and the run summary to the output
directory for the external report and chart tooling.
"""

import csv
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

# Column order for every exported table, used when a table has no rows
TABLE_COLUMNS = {
    'channel_split': ['retail_revenue', 'warehouse_revenue', 'retail_pct', 'warehouse_pct',
                      'retail_transactions', 'warehouse_transactions'],
    'channel_averages': ['channel', 'avg_transaction', 'num_transactions'],
    'category_breakdown': ['item_type', 'total_revenue', 'pct_of_core'],
    'category_efficiency': ['item_type', 'total_revenue', 'pct_of_total', 'num_products',
                            'revenue_per_product'],
    'category_channel_split': ['item_type', 'retail_revenue', 'warehouse_revenue', 'warehouse_pct'],
    'top_products_retail': ['item_description', 'item_type', 'total_revenue', 'num_transactions'],
    'top_products_warehouse': ['item_description', 'item_type', 'warehouse_revenue', 'num_orders'],
    'top_suppliers': ['supplier', 'total_revenue', 'num_products', 'num_transactions',
                      'revenue_per_product'],
    'supplier_concentration': ['supplier', 'supplier_revenue', 'pct_of_total', 'cumulative_pct'],
    'monthly_pattern': ['month', 'monthly_revenue', 'num_transactions', 'avg_transaction_value'],
    'yearly_revenue': ['year', 'total_retail_sales'],
    'monthly_revenue': ['year', 'month', 'monthly_revenue', 'num_transactions'],
    'average_monthly_revenue': ['month', 'avg_revenue', 'years_with_data'],
    'wholesale_ratio': ['item_description', 'item_type', 'retail_rev', 'warehouse_rev',
                        'wholesale_ratio'],
    'supplier_diversification': ['supplier', 'num_categories', 'num_products', 'total_revenue',
                                 'categories_offered'],
    'revenue_concentration_tiers': ['product_tier', 'num_products', 'tier_revenue', 'pct_of_total'],
    'coverage_grid': ['year', 'month', 'has_data'],
}

TABLE_DESCRIPTIONS = {
    'channel_split': "Retail vs warehouse revenue and each channel's share of the combined total.",
    'channel_averages': "Average amount per row for each channel (rows with a positive amount).",
    'category_breakdown': "LIQUOR, WINE and BEER revenue with each category's share of those three.",
    'category_efficiency': "Revenue, distinct products and revenue per product for every item type.",
    'category_channel_split': "Retail and warehouse revenue per core category, with the warehouse share.",
    'top_products_retail': "Top products by retail revenue.",
    'top_products_warehouse': "Top products by warehouse revenue (rows with warehouse sales only).",
    'top_suppliers': "Top suppliers by retail revenue, with product counts and revenue per product.",
    'supplier_concentration': "Supplier share of total revenue with a running cumulative share.",
    'monthly_pattern': "Revenue, row count and average row value per month of the selected year.",
    'yearly_revenue': "Retail revenue per year.",
    'monthly_revenue': "Retail revenue and row count per year and month.",
    'average_monthly_revenue': "Mean revenue per calendar month across the years that have it.",
    'wholesale_ratio': "Products with the highest warehouse-to-retail revenue ratio.",
    'supplier_diversification': "Suppliers with the broadest product portfolios.",
    'revenue_concentration_tiers': "Revenue held by the top 10, 11-50, 51-100 and remaining products.",
    'coverage_grid': "Every (year, month) of the analysis window and whether it has data.",
}


def _format_value(value: Any) -> Any:
    """Undefined values become empty cells; decimals are written as plain text."""
    if value is None:
        return ''
    if isinstance(value, Decimal):
        return format(value, 'f')
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return format(value, 'f')
    if hasattr(value, 'model_dump'):
        return value.model_dump()
    return str(value)


class DataSaver:
    """
    Saves result tables from the DataAggregator as CSV files.
    """

    def __init__(self, output_dir: str = "data/processed"):
        """
        Initialize the data saver.

        Args:
            output_dir (str): Directory to save output files
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.summary_file = self.output_dir / "pipeline_summary.json"
        logger.info(f"DataSaver initialized with output directory: {self.output_dir}")

    def save_tables(self, tables: Dict[str, List[Dict[str, Any]]]) -> Dict[str, str]:
        """
        Save every table as ``<name>.csv``.

        Returns:
            dict: Mapping of table name to saved file path
        """
        saved_files = {}
        for name, rows in tables.items():
            saved_files[name] = self.save_table(name, rows)

        logger.info(f"All tables saved successfully to {len(saved_files)} files")
        return saved_files

    def save_table(self, name: str, rows: List[Dict[str, Any]]) -> str:
        file_path = self.output_dir / f"{name}.csv"
        if rows:
            headers = list(rows[0].keys())
        else:
            headers = TABLE_COLUMNS.get(name, [])
            logger.warning(f"Table '{name}' has no rows")

        formatted = [{key: _format_value(value) for key, value in row.items()} for row in rows]
        self._write_csv(file_path, headers, formatted)
        return str(file_path)

    def save_summary(self, summary_data: Dict[str, Any]) -> str:
        """Save the run summary as JSON."""
        file_path = self.summary_file

        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(summary_data, f, indent=2, ensure_ascii=False, default=_json_default)

        logger.info(f"Summary saved to {file_path}")
        return str(file_path)

    def _write_csv(self, file_path: Path, headers: List[str], data_items: List[Dict]) -> None:
        """Write data to CSV file."""
        try:
            with open(file_path, 'w', newline='', encoding='utf-8') as f:
                writer = csv.DictWriter(f, fieldnames=headers)
                writer.writeheader()
                writer.writerows(data_items)

            logger.info(f"Saved {len(data_items)} records to {file_path}")

        except OSError as e:
            logger.error(f"Error writing CSV file {file_path}: {e}")
            raise

    def create_data_dictionary(self) -> str:
        """Create a data dictionary explaining all output files."""
        file_path = self.output_dir / "DATA_DICTIONARY.md"

        lines = [
            "# Data Dictionary",
            "",
            "One CSV file per result table. Monetary values and percentages are rounded",
            "to 2 decimal places; an empty cell means the value is undefined (a ratio",
            "whose denominator was zero).",
            "",
            "Cleaning fills a supplier or item type only when it is null or empty text;",
            "whitespace-only values are kept as they are.",
            "",
        ]
        for name, columns in TABLE_COLUMNS.items():
            lines.append(f"## {name}.csv")
            lines.append("")
            lines.append(TABLE_DESCRIPTIONS.get(name, ""))
            lines.append("")
            lines.append(f"Columns: {', '.join(columns)}")
            lines.append("")
        lines.append("## pipeline_summary.json")
        lines.append("")
        lines.append("Quality profiles before and after cleaning, the cleaning report")
        lines.append("(rows affected per rule) and processing statistics.")
        lines.append("")

        with open(file_path, 'w', encoding='utf-8') as f:
            f.write("\n".join(lines))

        logger.info(f"Data dictionary created at {file_path}")
        return str(file_path)
