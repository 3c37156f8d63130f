"""
Business logic services.

Each service handles one domain area.
"""

from services.interfaces import (
    CatalogProduct,
    RowError,
    BulkUpsertResult,
    PriceStore,
    ServiceabilityIndex,
    ProductCatalog,
)
from services.price_store import LocationPriceService, get_location_price_service
from services.serviceability_service import ServiceabilityService, get_serviceability_service
from services.catalog_service import CatalogService, get_catalog_service
from services.price_resolver import PriceResolver, BulkResolution, get_price_resolver
from services.price_import_service import PriceImportService, get_price_import_service
from services.template_service import (
    TemplateService,
    TemplateFormat,
    TemplateFile,
    get_template_service,
)

__all__ = [
    "CatalogProduct",
    "RowError",
    "BulkUpsertResult",
    "PriceStore",
    "ServiceabilityIndex",
    "ProductCatalog",
    "LocationPriceService",
    "get_location_price_service",
    "ServiceabilityService",
    "get_serviceability_service",
    "CatalogService",
    "get_catalog_service",
    "PriceResolver",
    "BulkResolution",
    "get_price_resolver",
    "PriceImportService",
    "get_price_import_service",
    "TemplateService",
    "TemplateFormat",
    "TemplateFile",
    "get_template_service",
]
