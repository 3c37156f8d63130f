"""
Price sheet template generation.

Produces a sheet in the exact layout the importer reads:

    sku, product_id, product_title, <location>, <location>, ...

with one row per catalog product and each location cell pre-filled with the
current active price. Uploading an unedited template changes nothing.
"""

import csv
from dataclasses import dataclass
from datetime import date
from enum import Enum
from io import BytesIO, StringIO
from typing import Iterable, Optional
import structlog

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from config.pricing import PricingConfig
from models.pricing import is_valid_location_code
from parsers.price_sheet_parser import FIXED_COLUMNS
from services.interfaces import PriceStore, ProductCatalog, ServiceabilityIndex
from utils.money import format_major_amount, to_major_units

logger = structlog.get_logger(__name__)

SHEET_TITLE = "Location Pricing"
UTF8_BOM = "\ufeff"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class TemplateFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


@dataclass
class TemplateFile:
    """Generated template ready to send as a download."""
    content: bytes
    filename: str
    media_type: str
    location_codes: list[str]
    product_count: int


class TemplateService:
    """Builds downloadable price sheets from the catalog and current prices."""

    def __init__(
        self,
        price_store: PriceStore,
        serviceability: ServiceabilityIndex,
        catalog: ProductCatalog,
        config: Optional[PricingConfig] = None,
    ):
        self.price_store = price_store
        self.serviceability = serviceability
        self.catalog = catalog
        self.config = config or PricingConfig()

    def generate(
        self,
        location_codes: Optional[Iterable[str]] = None,
        file_format: TemplateFormat = TemplateFormat.CSV,
        product_id: Optional[str] = None,
    ) -> TemplateFile:
        """
        Generate a template.

        Args:
            location_codes: Columns to include; invalid codes are dropped
            file_format: csv or xlsx
            product_id: Restrict the template to one product

        Returns:
            TemplateFile with the encoded bytes and download metadata
        """
        codes = self.choose_location_codes(location_codes)
        products = self.catalog.list_products(
            limit=self.config.template_product_limit,
            product_id=product_id,
        )

        prices = {
            price.key: price.price_minor
            for price in self.price_store.list_active(
                product_id=product_id,
                location_codes=codes,
            )
        }

        rows = []
        for product in products:
            cells = [prices.get((product.id, code)) for code in codes]
            rows.append((product.sku or "", product.id, product.title or "", cells))

        file_format = TemplateFormat(file_format)
        if file_format == TemplateFormat.XLSX:
            content = self._render_xlsx(codes, rows)
            media_type = XLSX_MEDIA_TYPE
        else:
            content = self._render_csv(codes, rows)
            media_type = CSV_MEDIA_TYPE

        filename = f"location-pricing-template-{date.today().isoformat()}.{file_format.value}"

        logger.info(
            "price_template_generated",
            file_format=file_format.value,
            locations=len(codes),
            products=len(products),
            prefilled=len(prices)
        )

        return TemplateFile(
            content=content,
            filename=filename,
            media_type=media_type,
            location_codes=codes,
            product_count=len(products),
        )

    def choose_location_codes(self, requested: Optional[Iterable[str]] = None) -> list[str]:
        """
        Location columns for a template.

        Requested valid codes first, else serviceable codes on file, else the
        configured defaults. Repeats are dropped.
        """
        if requested:
            cleaned = [(code or "").strip() for code in requested]
            valid = [code for code in cleaned if is_valid_location_code(code)]
            if len(valid) < len(cleaned):
                logger.warning(
                    "template_location_codes_dropped",
                    dropped=[code for code in cleaned if not is_valid_location_code(code)]
                )
            if valid:
                return list(dict.fromkeys(valid))

        on_file = self.serviceability.list_serviceable_codes()
        if on_file:
            return list(dict.fromkeys(on_file))

        return list(self.config.default_location_codes)

    def _render_csv(self, codes: list[str], rows: list) -> bytes:
        buffer = StringIO()
        writer = csv.writer(buffer, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)
        writer.writerow([*FIXED_COLUMNS, *codes])

        for sku, product_id, title, cells in rows:
            writer.writerow([
                sku,
                product_id,
                title,
                *["" if minor is None else format_major_amount(minor) for minor in cells],
            ])

        return (UTF8_BOM + buffer.getvalue()).encode("utf-8")

    def _render_xlsx(self, codes: list[str], rows: list) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = SHEET_TITLE

        bold_font = Font(bold=True)
        center = Alignment(horizontal="center")

        ws.append([*FIXED_COLUMNS, *codes])
        for cell in ws[1]:
            cell.font = bold_font
            cell.alignment = center

        for sku, product_id, title, cells in rows:
            ws.append([
                sku,
                product_id,
                title,
                *[None if minor is None else to_major_units(minor) for minor in cells],
            ])

        ws.column_dimensions["A"].width = 20
        ws.column_dimensions["B"].width = 28
        ws.column_dimensions["C"].width = 40
        for index in range(len(FIXED_COLUMNS) + 1, len(FIXED_COLUMNS) + len(codes) + 1):
            ws.column_dimensions[get_column_letter(index)].width = 12
        ws.freeze_panes = "D2"

        output = BytesIO()
        wb.save(output)
        return output.getvalue()


# Singleton instance for convenience
_template_service: Optional[TemplateService] = None


def get_template_service() -> TemplateService:
    """Get or create TemplateService wired to the Supabase-backed services."""
    global _template_service
    if _template_service is None:
        from services.catalog_service import get_catalog_service
        from services.price_store import get_location_price_service
        from services.serviceability_service import get_serviceability_service

        _template_service = TemplateService(
            price_store=get_location_price_service(),
            serviceability=get_serviceability_service(),
            catalog=get_catalog_service(),
            config=PricingConfig.from_settings(),
        )
    return _template_service
