# ========================
# src/liquor_sales/__init__.py
# ========================

"""
Liquor Sales Analysis Package

Core components of the retail alcohol sales analysis pipeline:
- models: Typed sales records, reports and errors
- ingestion: CSV loading and header validation
- quality: Completeness and coverage checks
- cleaning: Ordered cleaning rules with an audit report
- transformation: Aggregate query catalog
- storage: Result table export
- orchestrator: Pipeline coordination
"""

from .models import (
    CleaningError,
    CleaningReport,
    CoverageCell,
    FormatError,
    ParseError,
    SalesDataError,
    SalesRecord,
)
from .ingestion import CSVReader, load_records
from .quality import QualityChecker
from .cleaning import DataCleaner
from .transformation import DataAggregator
from .storage import DataSaver
from .orchestrator import DataPipeline

__all__ = [
    'CleaningError',
    'CleaningReport',
    'CoverageCell',
    'FormatError',
    'ParseError',
    'SalesDataError',
    'SalesRecord',
    'CSVReader',
    'load_records',
    'QualityChecker',
    'DataCleaner',
    'DataAggregator',
    'DataSaver',
    'DataPipeline',
]

__version__ = "1.0.0"
