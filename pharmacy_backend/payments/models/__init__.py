from .payment import Payment
from .payment_gateway import PaymentGateway

__all__ = ["Payment", "PaymentGateway"]
