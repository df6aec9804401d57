from .promo_codes import (
    PromoValidation,
    create_promo_code,
    get_promo_code,
    increment_used_count,
    list_promo_codes,
    update_promo_code,
    validate_promo_code,
)

__all__ = [
    "PromoValidation",
    "validate_promo_code",
    "increment_used_count",
    "create_promo_code",
    "update_promo_code",
    "get_promo_code",
    "list_promo_codes",
]
