# ========================
# src/utils/config.py
# ========================

"""
Configuration Management

Centralized configuration for the sales analysis pipeline with environment support.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def _int_list(value: str):
    return [int(part) for part in value.split(',') if part.strip()]


def _str_list(value: str):
    return [part.strip().upper() for part in value.split(',') if part.strip()]


class Config:
    """
    Configuration class for the pipeline.
    Supports environment variables and default values.
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            config_dict (dict): Optional configuration overrides
        """
        # File Paths
        self.DEFAULT_INPUT_FILE = os.getenv('PIPELINE_INPUT_FILE', 'data/raw/Warehouse_and_Retail_Sales.csv')
        self.DEFAULT_OUTPUT_DIR = os.getenv('PIPELINE_OUTPUT_DIR', 'data/processed')
        self.DEFAULT_CHUNK_SIZE = int(os.getenv('PIPELINE_CHUNK_SIZE', '10000'))

        # Sample Data
        self.DEFAULT_SAMPLE_ROWS = int(os.getenv('SAMPLE_ROWS', '10000'))

        # Quality Checks
        self.COVERAGE_YEARS = _int_list(os.getenv('COVERAGE_YEARS', '2017,2018,2019,2020'))

        # Cleaning Rules
        self.UNKNOWN_SUPPLIER = os.getenv('UNKNOWN_SUPPLIER', 'UNKNOWN')
        self.ITEM_TYPE_OVERRIDES_FILE = os.getenv('ITEM_TYPE_OVERRIDES_FILE', '')
        self.ITEM_TYPE_OVERRIDES: Dict[str, str] = {}
        self.ITEM_TYPE_FALLBACK = os.getenv('ITEM_TYPE_FALLBACK') or None

        # Query Parameters
        self.CORE_ITEM_TYPES = _str_list(os.getenv('CORE_ITEM_TYPES', 'LIQUOR,WINE,BEER'))
        self.TOP_PRODUCTS_LIMIT = int(os.getenv('TOP_PRODUCTS_LIMIT', '10'))
        self.TOP_SUPPLIERS_LIMIT = int(os.getenv('TOP_SUPPLIERS_LIMIT', '10'))
        self.SUPPLIER_CONCENTRATION_LIMIT = int(os.getenv('SUPPLIER_CONCENTRATION_LIMIT', '15'))
        self.MONTHLY_PATTERN_YEAR = int(os.getenv('MONTHLY_PATTERN_YEAR', '2019'))
        self.WHOLESALE_RATIO_THRESHOLD = int(os.getenv('WHOLESALE_RATIO_THRESHOLD', '1000'))
        self.WHOLESALE_RATIO_LIMIT = int(os.getenv('WHOLESALE_RATIO_LIMIT', '20'))
        self.DIVERSIFICATION_MIN_PRODUCTS = int(os.getenv('DIVERSIFICATION_MIN_PRODUCTS', '50'))
        self.DIVERSIFICATION_LIMIT = int(os.getenv('DIVERSIFICATION_LIMIT', '15'))

        # Logging Configuration
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
        self.LOG_DIR = os.getenv('LOG_DIR', 'logs')

        # Override with provided config
        if config_dict:
            self._update_from_dict(config_dict)

        if self.ITEM_TYPE_OVERRIDES_FILE and not self.ITEM_TYPE_OVERRIDES:
            self.ITEM_TYPE_OVERRIDES = self.load_item_type_overrides(self.ITEM_TYPE_OVERRIDES_FILE)

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration from dictionary."""
        for key, value in config_dict.items():
            if hasattr(self, key.upper()):
                setattr(self, key.upper(), value)

    @staticmethod
    def load_item_type_overrides(file_path: str) -> Dict[str, str]:
        """
        Load the item type override mapping from a JSON object file.

        Keys are item codes or item descriptions, values are item types.
        """
        with open(file_path, 'r', encoding='utf-8') as f:
            overrides = json.load(f)
        if not isinstance(overrides, dict):
            raise ValueError(f"Item type overrides in {file_path} must be a JSON object")
        invalid = [key for key, value in overrides.items() if not isinstance(value, str) or not value]
        if invalid:
            raise ValueError(f"Item type overrides in {file_path} must map to non-empty text: {invalid}")
        logger.info(f"Loaded {len(overrides)} item type overrides from {file_path}")
        return {key: value.upper() for key, value in overrides.items()}

    def get_data_paths(self) -> Dict[str, Path]:
        """Get all configured data paths as Path objects."""
        return {
            'input_file': Path(self.DEFAULT_INPUT_FILE),
            'output_dir': Path(self.DEFAULT_OUTPUT_DIR),
            'raw_data_dir': Path(self.DEFAULT_INPUT_FILE).parent,
            'logs_dir': Path(self.LOG_DIR),
        }

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        paths = self.get_data_paths()
        for path_name, path in paths.items():
            if path_name.endswith('_dir'):
                path.mkdir(parents=True, exist_ok=True)

    def query_parameters(self) -> Dict[str, Any]:
        """Keyword arguments for DataAggregator.run_all."""
        return {
            'top_products_limit': self.TOP_PRODUCTS_LIMIT,
            'top_suppliers_limit': self.TOP_SUPPLIERS_LIMIT,
            'concentration_limit': self.SUPPLIER_CONCENTRATION_LIMIT,
            'monthly_pattern_year': self.MONTHLY_PATTERN_YEAR,
            'wholesale_threshold': self.WHOLESALE_RATIO_THRESHOLD,
            'wholesale_limit': self.WHOLESALE_RATIO_LIMIT,
            'diversification_min_products': self.DIVERSIFICATION_MIN_PRODUCTS,
            'diversification_limit': self.DIVERSIFICATION_LIMIT,
            'core_item_types': tuple(self.CORE_ITEM_TYPES),
        }

    def validate_config(self) -> Dict[str, bool]:
        """
        Validate configuration values.

        Returns:
            dict: Validation results for each setting
        """
        validations = {}

        validations['chunk_size'] = self.DEFAULT_CHUNK_SIZE > 0
        validations['sample_rows'] = self.DEFAULT_SAMPLE_ROWS > 0
        validations['coverage_years'] = len(self.COVERAGE_YEARS) > 0
        validations['unknown_supplier'] = bool(self.UNKNOWN_SUPPLIER.strip())
        validations['core_item_types'] = len(self.CORE_ITEM_TYPES) > 0
        validations['top_products_limit'] = self.TOP_PRODUCTS_LIMIT > 0
        validations['top_suppliers_limit'] = self.TOP_SUPPLIERS_LIMIT > 0
        validations['supplier_concentration_limit'] = self.SUPPLIER_CONCENTRATION_LIMIT > 0
        validations['monthly_pattern_year'] = self.MONTHLY_PATTERN_YEAR in self.COVERAGE_YEARS
        validations['wholesale_ratio_threshold'] = self.WHOLESALE_RATIO_THRESHOLD >= 0
        validations['wholesale_ratio_limit'] = self.WHOLESALE_RATIO_LIMIT > 0
        validations['diversification_min_products'] = self.DIVERSIFICATION_MIN_PRODUCTS >= 0
        validations['diversification_limit'] = self.DIVERSIFICATION_LIMIT > 0

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        validations['log_level'] = self.LOG_LEVEL.upper() in valid_log_levels

        return validations

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            attr: getattr(self, attr)
            for attr in dir(self)
            if not attr.startswith('_') and not callable(getattr(self, attr))
        }

    def save_to_file(self, file_path: str) -> None:
        """Save configuration to JSON file."""
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, file_path: str) -> 'Config':
        """Load configuration from JSON file."""
        with open(file_path, 'r') as f:
            config_dict = json.load(f)
        return cls(config_dict)

    def __str__(self) -> str:
        """String representation of configuration."""
        lines = ["Configuration Settings:"]
        config_dict = self.to_dict()
        for key, value in sorted(config_dict.items()):
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)
