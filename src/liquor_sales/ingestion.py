# ========================
# src/liquor_sales/ingestion.py
# ========================

"""
Data Ingestion Module

Reads the sales CSV in chunks, checks the header and turns each row into a
validated SalesRecord.
"""

import csv
import logging
from typing import Dict, Iterator, List, Optional

from pydantic import ValidationError

from .models import REQUIRED_COLUMNS, FormatError, ParseError, SalesRecord

logger = logging.getLogger(__name__)


def normalize_column(name: Optional[str]) -> str:
    """Map a raw header cell to its canonical form ("Item Code" -> "ITEM CODE")."""
    if name is None:
        return ""
    return " ".join(name.split()).upper()


class CSVReader:
    """
    Reads a sales file in chunks of raw rows and builds SalesRecord objects.
    The header is checked before the first row is handed out.
    """

    def __init__(self, file_path):
        """
        Initialize the CSV reader.

        Args:
            file_path (str): Path to the CSV file to read
        """
        self.file_path = file_path
        self.header = []
        self.rows_read = 0
        logger.info(f"Initialized CSVReader for file: {file_path}")

    def _column_map(self, fieldnames: Optional[List[str]]) -> Dict[str, str]:
        """Map raw header cells to canonical names, failing on missing columns."""
        if not fieldnames:
            raise FormatError(f"File '{self.file_path}' has no header row",
                              missing_columns=list(REQUIRED_COLUMNS))

        column_map = {}
        for raw_name in fieldnames:
            canonical = normalize_column(raw_name)
            if canonical in REQUIRED_COLUMNS and canonical not in column_map.values():
                column_map[raw_name] = canonical

        missing = [col for col in REQUIRED_COLUMNS if col not in column_map.values()]
        if missing:
            raise FormatError(
                f"File '{self.file_path}' is missing required columns: {', '.join(missing)}",
                missing_columns=missing,
            )
        return column_map

    def read_in_chunks(self, chunk_size: int) -> Iterator[List[Dict[str, Optional[str]]]]:
        """
        A generator that yields lists of raw rows keyed by canonical column name.

        Each row also carries its physical line number under ``_line``.

        Args:
            chunk_size (int): The number of rows to yield per chunk.

        Yields:
            list[dict]: A chunk of raw rows.
        """
        try:
            with open(self.file_path, 'r', newline='', encoding='utf-8-sig') as f:
                reader = csv.DictReader(f)
                self.header = reader.fieldnames
                logger.info(f"CSV header: {self.header}")
                column_map = self._column_map(self.header)

                chunk = []
                self.rows_read = 0

                for row in reader:
                    raw = {canonical: row.get(raw_name) for raw_name, canonical in column_map.items()}
                    raw['_line'] = reader.line_num
                    chunk.append(raw)
                    self.rows_read += 1

                    if len(chunk) == chunk_size:
                        logger.debug(f"Yielding chunk with {len(chunk)} rows")
                        yield chunk
                        chunk = []

                if chunk:
                    logger.debug(f"Yielding final chunk with {len(chunk)} rows")
                    yield chunk

                logger.info(f"Total rows read: {self.rows_read}")

        except FileNotFoundError:
            logger.error(f"File '{self.file_path}' was not found")
            raise
        except FormatError as e:
            logger.error(f"Invalid input format: {e}")
            raise

    def load_records(self, chunk_size: int = 10000) -> List[SalesRecord]:
        """
        Load the whole file into a list of SalesRecord, in file order.

        Raises:
            FormatError: required columns are absent
            ParseError: a field other than retail sales cannot be cast
        """
        records = []
        for chunk in self.read_in_chunks(chunk_size):
            for raw in chunk:
                records.append(self._to_record(raw))

        logger.info(f"Loaded {len(records):,} records from {self.file_path}")
        return records

    def _to_record(self, raw: Dict[str, Optional[str]]) -> SalesRecord:
        line_number = raw.pop('_line', None)
        try:
            return SalesRecord.model_validate(raw)
        except ValidationError as e:
            fields = ", ".join(".".join(str(part) for part in err['loc']) for err in e.errors())
            message = f"Line {line_number}: cannot parse field(s) {fields}"
            logger.error(message)
            raise ParseError(message, line_number=line_number, errors=e.errors()) from e


def load_records(file_path, chunk_size: int = 10000) -> List[SalesRecord]:
    """Convenience wrapper: load every record of ``file_path``."""
    return CSVReader(file_path).load_records(chunk_size)
