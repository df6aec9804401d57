from .promo_code import PromoCode

__all__ = ["PromoCode"]
