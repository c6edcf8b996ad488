# ========================
# src/liquor_sales/models.py
# ========================

"""
Data Models

Typed record model for one supplier/product/month sales row, the coverage
and cleaning report types, and the error hierarchy shared by every stage.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Canonical input header, in file order
REQUIRED_COLUMNS = [
    "YEAR",
    "MONTH",
    "SUPPLIER",
    "ITEM CODE",
    "ITEM DESCRIPTION",
    "ITEM TYPE",
    "RETAIL SALES",
    "RETAIL TRANSFERS",
    "WAREHOUSE SALES",
]

UNKNOWN_SUPPLIER = "UNKNOWN"


class SalesDataError(Exception):
    """Base class for every error raised by the sales pipeline."""


class FormatError(SalesDataError):
    """The input file does not carry the expected column header."""

    def __init__(self, message: str, missing_columns: Optional[List[str]] = None):
        super().__init__(message)
        self.missing_columns = missing_columns or []


class ParseError(SalesDataError):
    """A field other than retail sales could not be cast to its type."""

    def __init__(self, message: str, line_number: Optional[int] = None,
                 errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.line_number = line_number
        self.errors = errors or []


class CleaningError(SalesDataError):
    """A record could not be repaired by any configured cleaning rule."""


def is_missing(value: Any) -> bool:
    """True for null values and empty text. Whitespace is a value."""
    return value is None or value == ''


def _is_blank_amount(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


class SalesRecord(BaseModel):
    """
    One row of the sales file: a supplier/product pair for one month.

    Validated once when the file is loaded, so aggregations never cast text.
    Retail sales that are blank or unparseable load as None; those rows are
    deleted by the cleaner rather than failing the load.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    year: int = Field(..., alias="YEAR")
    month: int = Field(..., ge=1, le=12, alias="MONTH")
    supplier: Optional[str] = Field(default=None, alias="SUPPLIER")
    item_code: str = Field(..., alias="ITEM CODE")
    item_description: Optional[str] = Field(default=None, alias="ITEM DESCRIPTION")
    item_type: Optional[str] = Field(default=None, alias="ITEM TYPE")
    retail_sales: Optional[Decimal] = Field(default=None, alias="RETAIL SALES")
    retail_transfers: Optional[Decimal] = Field(default=None, alias="RETAIL TRANSFERS")
    warehouse_sales: Optional[Decimal] = Field(default=None, alias="WAREHOUSE SALES")

    @field_validator("retail_sales", mode="before")
    @classmethod
    def _parse_retail_sales(cls, value: Any) -> Any:
        if _is_blank_amount(value):
            return None
        if isinstance(value, str):
            try:
                parsed = Decimal(value.strip())
            except InvalidOperation:
                return None
            return parsed if parsed.is_finite() else None
        return value

    @field_validator("retail_transfers", "warehouse_sales", mode="before")
    @classmethod
    def _blank_amount_to_none(cls, value: Any) -> Any:
        if _is_blank_amount(value):
            return None
        if isinstance(value, str):
            return value.strip()
        return value


class CoverageCell(BaseModel):
    """One (year, month) slot of the calendar grid."""

    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    has_data: bool


class CleaningReport(BaseModel):
    """Audit trail of one cleaning pass: rows affected per rule."""

    rows_before: int = 0
    rows_after: int = 0
    delete: int = 0
    supplier_fill: int = 0
    item_type_fill: int = 0

    def affected_counts(self) -> Dict[str, int]:
        return {
            'delete': self.delete,
            'supplier_fill': self.supplier_fill,
            'item_type_fill': self.item_type_fill,
        }

    @property
    def total_affected(self) -> int:
        return self.delete + self.supplier_fill + self.item_type_fill
