"""
Import a location price sheet straight into the price store.

Runs the same pipeline as POST /api/location-pricing/upload without going
through the API.

Usage:
    python scripts/import_price_sheet.py data/prices.csv

    # Force the container format when the filename is ambiguous
    python scripts/import_price_sheet.py export.txt --format csv

    # Reject prices for products missing from the catalog
    python scripts/import_price_sheet.py data/prices.xlsx --verify-products
"""

import argparse
import os
import sys
from dataclasses import replace

# Allow imports from the project root when running as a script
_root_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_root_dir, ".env"))

from config.database import get_admin_client
from config.pricing import PricingConfig
from exceptions import AppError
from parsers.tabular_parser import FileFormat
from services.catalog_service import CatalogService
from services.price_import_service import PriceImportService
from services.price_store import LocationPriceService

FORMATS = {
    "csv": FileFormat.DELIMITED,
    "tsv": FileFormat.DELIMITED,
    "xlsx": FileFormat.SPREADSHEET,
}


def print_report(report) -> None:
    print(f"\nImport Results:")
    print(f"  Rows processed: {report.total_rows_processed}")
    print(f"  Rows skipped: {report.rows_skipped}")
    print(f"  Imported: {report.imported}")
    print(f"    Created: {report.created}")
    print(f"    Updated: {report.updated}")
    print(f"    Unchanged: {report.unchanged}")
    print(f"  Failed: {report.failed}")
    print(f"  Cells skipped: {report.cells_skipped} ({report.cells_invalid} invalid)")

    if report.errors:
        print(f"\nErrors ({len(report.errors) + report.errors_truncated}):")
        for error in report.errors[:20]:
            print(f"  - {error}")
        hidden = len(report.errors) + report.errors_truncated - 20
        if hidden > 0:
            print(f"  ... and {hidden} more")


def main():
    parser = argparse.ArgumentParser(
        description="Import a location price sheet (CSV, TSV or XLSX)."
    )
    parser.add_argument("file", help="Path to the price sheet")
    parser.add_argument(
        "--format",
        choices=sorted(FORMATS),
        default=None,
        help="Container format (detected from name and content if omitted)",
    )
    parser.add_argument(
        "--verify-products",
        action="store_true",
        help="Reject prices for products not in the catalog",
    )
    args = parser.parse_args()

    if not os.path.isfile(args.file):
        print(f"File not found: {args.file}")
        sys.exit(1)

    config = PricingConfig.from_settings()
    if args.verify_products:
        config = replace(config, verify_products=True)

    # Service role key bypasses row-level security; falls back to the anon client
    client = get_admin_client()
    service = PriceImportService(
        price_store=LocationPriceService(client=client),
        catalog=CatalogService(client=client),
        config=config,
    )

    print(f"\n{'='*60}")
    print("LOCATION PRICE IMPORT")
    print(f"{'='*60}")
    print(f"File: {args.file}")

    with open(args.file, "rb") as f:
        content = f.read()

    try:
        report = service.import_file(
            content,
            filename=os.path.basename(args.file),
            file_format=FORMATS.get(args.format),
        )
    except AppError as e:
        print(f"\nImport rejected: [{e.code}] {e.message}")
        sys.exit(1)

    print_report(report)
    sys.exit(1 if report.failed else 0)


if __name__ == "__main__":
    main()
