# common/advisory.py

"""
ADVISORY (BEST-EFFORT) OPERATIONS

Some side effects must never fail their parent operation:
- mock payment recording after order creation
- customer lookup fallback for membership discounts
- staff points credit on order completion

Usage:

    with advisory("mock_payment", order_id=str(order.id)):
        ...

The block runs inside its own savepoint so a database failure cannot poison
an enclosing transaction. Failures are logged with context and NOT re-raised.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from django.db import transaction

logger = logging.getLogger("advisory")


@contextmanager
def advisory(operation: str, **context):
    try:
        with transaction.atomic():
            yield
    except Exception:
        logger.warning(
            "Advisory operation failed",
            extra={"operation": operation, **context},
            exc_info=True,
        )
