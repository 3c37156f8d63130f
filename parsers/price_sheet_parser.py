"""
Price sheet normalizer.

Interprets a parsed tabular sheet laid out as

    sku, product_id, product_title, <location>, <location>, ...

where each location column is a 6-digit code and each cell a price in major
units. Emits one candidate per non-blank valid cell.

Schema problems reject the whole sheet before any row is read. Row and cell
problems are counted and reported but never raise.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence
import structlog

from exceptions import SchemaError
from models.pricing import is_valid_location_code
from utils.money import parse_major_amount, to_minor_units

logger = structlog.get_logger(__name__)

FIXED_COLUMNS = ("sku", "product_id", "product_title")
SKU_COLUMN = 0
PRODUCT_ID_COLUMN = 1
FIRST_LOCATION_COLUMN = len(FIXED_COLUMNS)
MIN_COLUMNS = FIRST_LOCATION_COLUMN + 1

# Longest cell text echoed back in an error message
MAX_VALUE_ECHO = 40


class IssueKind(str, Enum):
    """Non-fatal diagnostics raised while reading rows."""
    ROW_SKIPPED = "ROW_SKIPPED"
    CELL_SKIPPED = "CELL_SKIPPED"


@dataclass
class PriceCandidate:
    """One validated (product, location, price) triple ready for upsert."""
    product_id: str
    location_code: str
    price_minor: int
    sku: Optional[str] = None
    row: Optional[int] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.location_code)


@dataclass
class ImportIssue:
    """Single row or cell that was skipped."""
    kind: IssueKind
    row: int
    message: str
    product_id: Optional[str] = None
    location_code: Optional[str] = None

    def describe(self) -> str:
        return f"Row {self.row}: {self.message}"


@dataclass
class NormalizedSheet:
    """Result of normalizing a price sheet."""
    location_codes: list[str] = field(default_factory=list)
    candidates: list[PriceCandidate] = field(default_factory=list)
    issues: list[ImportIssue] = field(default_factory=list)
    rows_processed: int = 0
    rows_skipped: int = 0
    cells_blank: int = 0
    cells_invalid: int = 0

    @property
    def cells_skipped(self) -> int:
        """Blank plus invalid cells."""
        return self.cells_blank + self.cells_invalid


def validate_header(header: Sequence[str]) -> list[str]:
    """
    Check the header row and return its location codes in column order.

    Raises:
        SchemaError: Fewer than 4 columns, any location header that is not
            6 digits, or the same location code twice
    """
    if len(header) < MIN_COLUMNS:
        raise SchemaError(
            "Sheet must have at least 4 columns: sku, product_id, "
            "product_title, and at least one location column",
            details={"columns_found": len(header)}
        )

    fixed = [str(col).strip().lower() for col in header[:FIRST_LOCATION_COLUMN]]
    if tuple(fixed) != FIXED_COLUMNS:
        # Columns are positional; names are only checked for the log
        logger.warning("price_sheet_unexpected_fixed_headers", found=fixed)

    location_codes = [str(col).strip() for col in header[FIRST_LOCATION_COLUMN:]]

    invalid = [code for code in location_codes if not is_valid_location_code(code)]
    if invalid:
        raise SchemaError(
            f"Invalid location code format in headers: {', '.join(invalid)}. "
            "Location codes must be 6 digits.",
            invalid_headers=invalid
        )

    seen: set[str] = set()
    duplicates = []
    for code in location_codes:
        if code in seen and code not in duplicates:
            duplicates.append(code)
        seen.add(code)
    if duplicates:
        raise SchemaError(
            f"Duplicate location columns: {', '.join(duplicates)}",
            invalid_headers=duplicates
        )

    return location_codes


def normalize(
    header: Sequence[str],
    rows: Sequence[Sequence[str]],
    row_numbers: Optional[Sequence[int]] = None,
) -> NormalizedSheet:
    """
    Turn sheet rows into price candidates.

    Args:
        header: Header row cells
        rows: Data row cells
        row_numbers: Source row number of each data row (defaults to
            position in the file with the header as row 1)

    Returns:
        NormalizedSheet with candidates in row order and per-row diagnostics

    Raises:
        SchemaError: If the header is invalid (see validate_header)
    """
    location_codes = validate_header(header)
    if row_numbers is None:
        row_numbers = range(2, len(rows) + 2)

    result = NormalizedSheet(location_codes=location_codes)

    for row_num, row in zip(row_numbers, rows):
        product_id = _cell(row, PRODUCT_ID_COLUMN)
        sku = _cell(row, SKU_COLUMN) or None

        if not product_id:
            result.rows_skipped += 1
            result.issues.append(ImportIssue(
                kind=IssueKind.ROW_SKIPPED,
                row=row_num,
                message="missing product_id",
            ))
            continue

        for offset, location_code in enumerate(location_codes):
            raw = _cell(row, FIRST_LOCATION_COLUMN + offset)

            if not raw:
                result.cells_blank += 1
                continue

            price_minor = _price_minor(raw)
            if price_minor is None:
                result.cells_invalid += 1
                result.issues.append(ImportIssue(
                    kind=IssueKind.CELL_SKIPPED,
                    row=row_num,
                    message=f"invalid price '{raw[:MAX_VALUE_ECHO]}' for {product_id} at {location_code}",
                    product_id=product_id,
                    location_code=location_code,
                ))
                continue

            result.candidates.append(PriceCandidate(
                product_id=product_id,
                location_code=location_code,
                price_minor=price_minor,
                sku=sku,
                row=row_num,
            ))

        result.rows_processed += 1

    logger.info(
        "price_sheet_normalized",
        locations=len(location_codes),
        rows_processed=result.rows_processed,
        rows_skipped=result.rows_skipped,
        candidates=len(result.candidates),
        cells_blank=result.cells_blank,
        cells_invalid=result.cells_invalid
    )
    return result


def _price_minor(raw: str) -> Optional[int]:
    """
    Minor units for a price cell, or None when the cell is not a usable price.

    Unusable: not a plain decimal, not positive after rounding to minor
    units, or larger than the price_minor column holds.
    """
    amount = parse_major_amount(raw)
    if amount is None or amount <= 0:
        return None
    try:
        price_minor = to_minor_units(amount)
    except ValueError:
        return None
    if price_minor <= 0:
        return None
    return price_minor


def _cell(row: Sequence[str], index: int) -> str:
    """Cell text at index, or "" when the row is short."""
    if index >= len(row):
        return ""
    value = row[index]
    return value.strip() if value else ""
