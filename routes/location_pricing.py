"""
Admin location pricing routes.

Bulk price upload, template download, per-product price listing, explicit
removal and statistics. Mounted under /api/location-pricing.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import JSONResponse, Response
import structlog

from models.pricing import (
    ImportResponse,
    PriceRemovalResponse,
    ProductPricesResponse,
    is_valid_location_code,
)
from models.serviceability import StatisticsResponse
from services.price_import_service import PriceImportService, get_price_import_service
from services.price_store import LocationPriceService, get_location_price_service
from services.serviceability_service import (
    ServiceabilityService,
    get_serviceability_service,
)
from services.template_service import (
    TemplateFormat,
    TemplateService,
    get_template_service,
)
from exceptions import (
    AppError,
    InvalidLocationCodeError,
    PriceNotFoundError,
)

logger = structlog.get_logger(__name__)

router = APIRouter()

ALLOWED_EXTENSIONS = (".csv", ".tsv", ".txt", ".xlsx", ".xlsm")


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/upload", response_model=ImportResponse)
async def upload_prices(
    file: UploadFile = File(...),
    service: PriceImportService = Depends(get_price_import_service),
):
    """
    Import a price sheet (CSV, TSV or XLSX).

    Layout: sku, product_id, product_title, then one 6-digit location code
    per column. Blank cells leave the existing price alone.

    Returns:
        Import report with created/updated/unchanged counts and row errors

    Raises:
        400: Unsupported file type
        422: Unreadable file or invalid header row
    """
    try:
        filename = file.filename or ""
        if "." in filename and not filename.lower().endswith(ALLOWED_EXTENSIONS):
            return JSONResponse(
                status_code=400,
                content={
                    "error": {
                        "code": "INVALID_FILE_TYPE",
                        "message": "File must be CSV, TSV or Excel (.xlsx)"
                    }
                }
            )

        content = await file.read()
        report = service.import_file(content, filename=filename or None)

        message = (
            f"Imported {report.imported} prices "
            f"({report.created} new, {report.updated} updated, "
            f"{report.unchanged} unchanged)"
        )
        if report.failed:
            message += f", {report.failed} failed"

        return ImportResponse(
            **report.model_dump(),
            filename=filename or None,
            message=message,
        )

    except Exception as e:
        return handle_error(e)


@router.get("/template")
async def download_template(
    location_codes: Optional[str] = Query(
        None,
        description="Comma-separated 6-digit location codes"
    ),
    file_format: TemplateFormat = Query(
        TemplateFormat.CSV,
        alias="format",
        description="csv or xlsx"
    ),
    product_id: Optional[str] = Query(None, description="Only this product"),
    service: TemplateService = Depends(get_template_service),
):
    """
    Download a pricing template pre-filled with current prices.

    Columns default to serviceable locations on file, then to the
    configured default locations.
    """
    try:
        codes = location_codes.split(",") if location_codes else None
        template = service.generate(
            location_codes=codes,
            file_format=file_format,
            product_id=product_id,
        )
        return Response(
            content=template.content,
            media_type=template.media_type,
            headers={
                "Content-Disposition": f'attachment; filename="{template.filename}"'
            },
        )

    except Exception as e:
        return handle_error(e)


@router.get("/statistics", response_model=StatisticsResponse)
async def get_statistics(
    store: LocationPriceService = Depends(get_location_price_service),
    serviceability: ServiceabilityService = Depends(get_serviceability_service),
):
    """Counters over all active prices plus location coverage."""
    try:
        prices = store.statistics()
        return StatisticsResponse(
            **prices.model_dump(),
            coverage=serviceability.coverage(),
        )

    except Exception as e:
        return handle_error(e)


@router.get("/products/{product_id}", response_model=ProductPricesResponse)
async def get_product_prices(
    product_id: str,
    store: LocationPriceService = Depends(get_location_price_service),
):
    """List every active location price of a product."""
    try:
        prices = store.list_active(product_id=product_id)
        return ProductPricesResponse(
            product_id=product_id,
            data=prices,
            total=len(prices),
        )

    except Exception as e:
        return handle_error(e)


@router.delete(
    "/products/{product_id}/locations/{location_code}",
    response_model=PriceRemovalResponse
)
async def remove_price(
    product_id: str,
    location_code: str,
    store: LocationPriceService = Depends(get_location_price_service),
):
    """
    Remove the price of a product at one location.

    Raises:
        404: No active price for the pair
        422: location_code is not 6 digits
    """
    try:
        if not is_valid_location_code(location_code):
            raise InvalidLocationCodeError(location_code)

        if not store.deactivate(product_id, location_code):
            raise PriceNotFoundError(product_id, location_code)

        return PriceRemovalResponse(
            product_id=product_id,
            location_code=location_code,
            deactivated=1,
        )

    except Exception as e:
        return handle_error(e)


@router.delete("/products/{product_id}", response_model=PriceRemovalResponse)
async def remove_product_prices(
    product_id: str,
    store: LocationPriceService = Depends(get_location_price_service),
):
    """
    Remove every price of a product.

    Called when the product is deleted from the catalog. Removing a product
    with no prices is not an error.
    """
    try:
        count = store.deactivate_product(product_id)
        return PriceRemovalResponse(product_id=product_id, deactivated=count)

    except Exception as e:
        return handle_error(e)
