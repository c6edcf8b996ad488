#!/usr/bin/env python3
# ========================
# main.py
# ========================

"""
Main Entry Point for the Retail Alcohol Sales Analysis Pipeline

Loads the sales file, profiles and cleans it, runs the aggregate query
catalog and writes the result tables. When the configured input file does
not exist, a sample file with the reference layout is generated first.
"""

import sys
import logging
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from src.liquor_sales import CleaningError, DataPipeline, SalesDataError
from src.utils import Config, setup_logging, DataGenerator


def main():
    """Main execution function."""
    config = Config()

    setup_logging(
        log_level=config.LOG_LEVEL,
        log_file="pipeline.log",
        log_dir=config.LOG_DIR
    )

    logger = logging.getLogger(__name__)
    logger.info("=" * 60)
    logger.info("RETAIL ALCOHOL SALES ANALYSIS - MAIN EXECUTION")
    logger.info("=" * 60)

    invalid = [name for name, ok in config.validate_config().items() if not ok]
    if invalid:
        logger.error(f"Invalid configuration settings: {', '.join(invalid)}")
        return 1

    try:
        config.ensure_directories()
        input_file = config.DEFAULT_INPUT_FILE

        # Step 1: Make sure there is something to analyse
        if not Path(input_file).exists():
            logger.warning(f"{input_file} not found, generating sample data instead")
            generator = DataGenerator(seed=42)
            generation_stats = generator.generate_dataset(
                file_path=input_file,
                num_rows=config.DEFAULT_SAMPLE_ROWS,
            )
            config.ITEM_TYPE_OVERRIDES.update(generation_stats['item_type_overrides'])
            logger.info(f"Sample data generated: {generation_stats['total_rows']:,} rows")

        # Step 2: Run the pipeline
        pipeline = DataPipeline(
            input_file=input_file,
            output_dir=config.DEFAULT_OUTPUT_DIR,
            config=config
        )

        if not pipeline.validate_input():
            logger.error("Input validation failed. Exiting.")
            return 1

        results = pipeline.run()

        # Step 3: Print summary
        _print_execution_summary(results)

        logger.info("Pipeline execution completed successfully!")
        return 0

    except CleaningError as e:
        logger.error(f"Pipeline execution failed: {e}")
        logger.error("Map the product to its item type in ITEM_TYPE_OVERRIDES_FILE, or set ITEM_TYPE_FALLBACK")
        return 1

    except (SalesDataError, OSError) as e:
        logger.error(f"Pipeline execution failed: {e}", exc_info=True)
        return 1


def _print_execution_summary(results: dict) -> None:
    """Print final execution summary."""
    report = results['cleaning_report']
    before = results['quality_before']
    after = results['quality_after']

    print("\n" + "=" * 70)
    print("PIPELINE EXECUTION SUMMARY")
    print("=" * 70)

    print("Data Quality:")
    print(f"   - Rows loaded: {before['total_rows']:,}")
    print(f"   - Missing retail sales / supplier / item type: "
          f"{before['missing_retail_sales']} / {before['missing_supplier']} / {before['missing_item_type']}")
    print(f"   - Months with data: {before['months_with_data']} of "
          f"{before['months_with_data'] + before['months_missing']}")

    print("\nCleaning:")
    print(f"   - Rows deleted: {report['delete']}")
    print(f"   - Suppliers filled: {report['supplier_fill']}")
    print(f"   - Item types filled: {report['item_type_fill']}")
    print(f"   - Rows after cleaning: {after['total_rows']:,}")

    print("\nGenerated Outputs:")
    for dataset_type, file_path in results['saved_files'].items():
        print(f"   - {dataset_type.replace('_', ' ').title()}: {Path(file_path).name}")

    print("=" * 70)


if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
