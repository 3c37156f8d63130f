"""
Pricing configuration passed into services at construction time.

Built once from Settings; services never read settings directly.
"""

from dataclasses import dataclass, field
from typing import Optional

from config.settings import Settings, get_settings


@dataclass(frozen=True)
class PricingConfig:
    """Options controlling import, resolution and template behavior."""
    currency_code: str = "INR"
    currency_symbol: str = "₹"
    default_location_codes: tuple[str, ...] = field(
        default=("110001", "400001", "560001", "600001", "700001")
    )
    verify_products: bool = False
    max_report_errors: int = 100
    bulk_lookup_limit: int = 50
    availability_limit: int = 100
    template_product_limit: int = 1000

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PricingConfig":
        """Build config from application settings."""
        settings = settings or get_settings()
        return cls(
            currency_code=settings.currency_code.upper(),
            currency_symbol=settings.currency_symbol,
            default_location_codes=tuple(settings.default_location_codes),
            verify_products=settings.verify_products,
            max_report_errors=settings.max_report_errors,
            bulk_lookup_limit=settings.bulk_lookup_limit,
            availability_limit=settings.availability_limit,
            template_product_limit=settings.template_product_limit,
        )
