"""
API route modules.

Each module defines routes for one audience.
"""

from routes.location_pricing import router as location_pricing_router
from routes.storefront_pricing import router as storefront_pricing_router

__all__ = [
    "location_pricing_router",
    "storefront_pricing_router",
]
