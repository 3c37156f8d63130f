"""
Price sheet import pipeline.

bytes -> TabularParser -> RecordNormalizer -> (catalog check) -> PriceStore

Malformed files and bad headers are rejected before anything is written.
Everything after that is best-effort: bad rows, bad cells and failed writes
are counted in the report while the rest of the sheet goes through.
"""

from typing import Optional
import structlog

from config.pricing import PricingConfig
from models.pricing import ImportReport
from parsers import tabular_parser
from parsers.price_sheet_parser import NormalizedSheet, PriceCandidate, normalize
from parsers.tabular_parser import FileFormat
from services.interfaces import (
    BulkUpsertResult,
    PriceStore,
    ProductCatalog,
    RowError,
)

logger = structlog.get_logger(__name__)

PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"


class PriceImportService:
    """Runs one upload through parsing, normalization and the bulk upsert."""

    def __init__(
        self,
        price_store: PriceStore,
        catalog: Optional[ProductCatalog] = None,
        config: Optional[PricingConfig] = None,
    ):
        self.price_store = price_store
        self.catalog = catalog
        self.config = config or PricingConfig()

    def import_file(
        self,
        content: bytes,
        filename: Optional[str] = None,
        file_format: Optional[FileFormat] = None,
    ) -> ImportReport:
        """
        Import a price sheet.

        Args:
            content: Raw upload bytes
            filename: Original filename, used for format detection
            file_format: Force a container format instead of detecting it

        Returns:
            ImportReport with write counts and bounded diagnostics

        Raises:
            MalformedInputError: File could not be read as a table
            SchemaError: Header row is invalid
            DatabaseError: Store unavailable before any write happened
        """
        logger.info(
            "price_import_started",
            filename=filename,
            size=len(content),
            file_format=file_format.value if file_format else None
        )

        sheet = tabular_parser.parse(content, file_format=file_format, filename=filename)
        normalized = normalize(sheet.header, sheet.rows, sheet.row_numbers)

        candidates, rejected = self._verify_products(normalized.candidates)
        written = self.price_store.bulk_upsert(candidates)
        written.errors = rejected + written.errors

        report = self._build_report(normalized, written)

        logger.info(
            "price_import_complete",
            filename=filename,
            imported=report.imported,
            created=report.created,
            updated=report.updated,
            unchanged=report.unchanged,
            failed=report.failed,
            rows_skipped=report.rows_skipped,
            cells_invalid=report.cells_invalid
        )
        return report

    def _verify_products(
        self,
        candidates: list[PriceCandidate],
    ) -> tuple[list[PriceCandidate], list[RowError]]:
        """Split candidates into known products and per-candidate errors."""
        if not self.config.verify_products or self.catalog is None or not candidates:
            return candidates, []

        known = self.catalog.existing_ids({c.product_id for c in candidates})
        accepted: list[PriceCandidate] = []
        rejected: list[RowError] = []

        for candidate in candidates:
            if candidate.product_id in known:
                accepted.append(candidate)
                continue
            rejected.append(RowError(
                product_id=candidate.product_id,
                location_code=candidate.location_code,
                code=PRODUCT_NOT_FOUND,
                message="product not in catalog",
                row=candidate.row,
            ))

        if rejected:
            logger.warning(
                "price_import_unknown_products",
                count=len({e.product_id for e in rejected})
            )
        return accepted, rejected

    def _build_report(
        self,
        normalized: NormalizedSheet,
        written: BulkUpsertResult,
    ) -> ImportReport:
        max_errors = self.config.max_report_errors
        messages = [issue.describe() for issue in normalized.issues]
        messages.extend(error.describe() for error in written.errors)

        return ImportReport(
            imported=written.written,
            created=written.created,
            updated=written.updated,
            unchanged=written.unchanged,
            failed=written.failed,
            total_rows_processed=normalized.rows_processed,
            rows_skipped=normalized.rows_skipped,
            cells_skipped=normalized.cells_skipped,
            cells_invalid=normalized.cells_invalid,
            errors=messages[:max_errors],
            errors_truncated=max(0, len(messages) - max_errors),
        )


# Singleton instance for convenience
_price_import_service: Optional[PriceImportService] = None


def get_price_import_service() -> PriceImportService:
    """Get or create PriceImportService wired to the Supabase-backed services."""
    global _price_import_service
    if _price_import_service is None:
        from services.catalog_service import get_catalog_service
        from services.price_store import get_location_price_service

        _price_import_service = PriceImportService(
            price_store=get_location_price_service(),
            catalog=get_catalog_service(),
            config=PricingConfig.from_settings(),
        )
    return _price_import_service
