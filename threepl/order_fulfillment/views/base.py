"""
Response helpers shared by the fulfillment views.
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from ..exceptions import BusinessException

logger = logging.getLogger(__name__)


def success_response(data, http_status=status.HTTP_200_OK, **extra):
    body = {'success': True, 'data': data}
    body.update(extra)
    return Response(body, status=http_status)


def error_response(exc: BusinessException):
    """Render a business exception with the status code its class maps to."""
    logger.info(f"Request rejected: {exc.code} {exc.message}")
    return Response({
        'success': False,
        'error': {
            'code': exc.code,
            'message': exc.message,
            'details': exc.details,
        }
    }, status=exc.http_status)
