"""Error mapping for the marketplace API."""
from __future__ import annotations

import logging

from django.db import IntegrityError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

from .models import InvalidTransition

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """Let DRF handle its own exceptions, map workflow rule errors to 400 and hide the rest behind a 500."""
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown view'

    if isinstance(exc, IntegrityError):
        logger.warning("Integrity error in %s: %s", view_name, exc)
        set_rollback()
        return Response({'detail': 'A conflicting record already exists'}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, InvalidTransition):
        set_rollback()
        return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    logger.exception("Unhandled error in %s", view_name)
    set_rollback()
    return Response({'detail': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
