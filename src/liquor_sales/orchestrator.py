# ========================
# src/liquor_sales/orchestrator.py
# ========================

"""
Pipeline Orchestrator Module

Main orchestrator class that runs load, quality check, cleaning,
aggregation and export in order.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .cleaning import DataCleaner
from .ingestion import CSVReader
from .models import SalesDataError
from .quality import QualityChecker
from .storage import DataSaver
from .transformation import DataAggregator
from ..utils.config import Config
from ..utils.performance_monitor import monitor_performance

logger = logging.getLogger(__name__)


class DataPipeline:
    """
    Orchestrates the sales analysis pipeline.
    Every stage runs to completion before the next one starts.
    """

    def __init__(self,
                 input_file: str,
                 output_dir: str,
                 config: Optional[Config] = None):
        """
        Initialize the data pipeline.

        Args:
            input_file (str): Path to input CSV file
            output_dir (str): Directory for output files
            config (Config): Configuration object
        """
        self.input_file = input_file
        self.output_dir = output_dir
        self.config = config or Config()

        self.reader = CSVReader(self.input_file)
        self.cleaner = DataCleaner(
            item_type_overrides=self.config.ITEM_TYPE_OVERRIDES,
            item_type_fallback=self.config.ITEM_TYPE_FALLBACK,
            unknown_supplier=self.config.UNKNOWN_SUPPLIER,
        )
        self.saver = DataSaver(self.output_dir)
        self.aggregator = None

        logger.info("DataPipeline initialized:")
        logger.info(f"  Input: {self.input_file}")
        logger.info(f"  Output: {self.output_dir}")

    def run(self) -> Dict[str, Any]:
        """
        Execute the complete pipeline from start to finish.

        Returns:
            dict: Summary of processing results and saved files

        Raises:
            SalesDataError: the input could not be loaded or cleaned
        """
        logger.info(f"Starting sales pipeline for '{self.input_file}'...")
        years = self.config.COVERAGE_YEARS

        try:
            with monitor_performance("Sales Pipeline") as monitor:
                records = self.reader.load_records(self.config.DEFAULT_CHUNK_SIZE)
                monitor.update_progress(len(records))
                monitor.add_checkpoint('load', {'rows': len(records)})

                quality_before = QualityChecker(records).profile(years)
                monitor.add_checkpoint('quality_before')

                cleaned, cleaning_report = self.cleaner.clean(records)
                monitor.add_checkpoint('clean', cleaning_report.affected_counts())

                checker_after = QualityChecker(cleaned)
                quality_after = checker_after.profile(years)
                monitor.add_checkpoint('quality_after')

                self.aggregator = DataAggregator(cleaned)
                tables = self.aggregator.run_all(**self.config.query_parameters())
                tables['coverage_grid'] = [cell.model_dump() for cell in checker_after.coverage_grid(years)]
                monitor.add_checkpoint('aggregate', {'tables': len(tables)})

                logger.info("Saving result tables...")
                saved_files = self.saver.save_tables(tables)
                saved_files['data_dictionary'] = self.saver.create_data_dictionary()
                saved_files['summary'] = str(self.saver.summary_file)
                monitor.add_checkpoint('save', {'files': len(saved_files)})
        except SalesDataError as e:
            logger.error(f"Pipeline failed: {e}")
            raise

        results = {
            'pipeline_status': 'completed',
            'input_file': self.input_file,
            'output_directory': self.output_dir,
            'saved_files': saved_files,
            'quality_before': quality_before,
            'quality_after': quality_after,
            'cleaning_report': cleaning_report.model_dump(),
            'processing_stats': self._get_processing_stats(monitor.summary),
        }
        self.saver.save_summary(results)

        logger.info("Pipeline finished successfully.")
        self._log_final_summary(results)

        return results

    def _get_processing_stats(self, performance: Dict[str, Any]) -> Dict[str, Any]:
        """Get processing statistics."""
        input_path = Path(self.input_file)
        return {
            **self.aggregator.get_aggregation_summary(),
            'input_file_size': input_path.stat().st_size if input_path.exists() else 0,
            'performance': performance,
        }

    def _log_final_summary(self, results: Dict[str, Any]) -> None:
        """Log final pipeline summary."""
        logger.info("=" * 60)
        logger.info("PIPELINE EXECUTION SUMMARY")
        logger.info("=" * 60)

        report = results['cleaning_report']
        logger.info(f"Input file: {results['input_file']}")
        logger.info(f"Rows loaded: {report['rows_before']:,}")
        logger.info(f"Rows after cleaning: {report['rows_after']:,}")
        logger.info(f"Rows deleted (no retail sales): {report['delete']}")
        logger.info(f"Suppliers filled: {report['supplier_fill']}")
        logger.info(f"Item types filled: {report['item_type_fill']}")
        logger.info(f"Output files generated: {len(results['saved_files'])}")
        logger.info(f"Output directory: {results['output_directory']}")

        logger.info("Generated datasets:")
        for dataset_type, file_path in results['saved_files'].items():
            logger.info(f"  - {dataset_type}: {file_path}")

        logger.info("=" * 60)

    def validate_input(self) -> bool:
        """
        Validate input file exists and is readable.

        Returns:
            bool: True if input is valid
        """
        input_path = Path(self.input_file)
        if not input_path.exists():
            logger.error(f"Input file does not exist: {self.input_file}")
            return False

        if not input_path.is_file():
            logger.error(f"Input path is not a file: {self.input_file}")
            return False

        try:
            with open(self.input_file, 'r', encoding='utf-8-sig') as f:
                f.readline()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot read input file: {e}")
            return False

        logger.info(f"Input validation passed: {self.input_file}")
        return True
