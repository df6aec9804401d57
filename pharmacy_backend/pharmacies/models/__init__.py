from .pharmacy import Pharmacy

__all__ = ["Pharmacy"]
