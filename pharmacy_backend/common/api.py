# common/api.py

"""
DRF EXCEPTION HANDLER

Maps service errors onto HTTP responses:
- ValidationError -> 400
- ForbiddenError  -> 403
- NotFoundError   -> 404
- ConflictError   -> 409
- InternalError   -> 500

Body shape: {"code": "...", "detail": "..."}
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from common.exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    InternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def service_exception_handler(exc, context):
    if isinstance(exc, ServiceError):
        http_status = STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
        if http_status >= 500:
            logger.error("Service failure", extra={"code": exc.code}, exc_info=exc)
        return Response({"code": exc.code, "detail": exc.message}, status=http_status)

    return drf_exception_handler(exc, context)
