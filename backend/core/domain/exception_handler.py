"""
Global DRF exception handler for the case-management API.

Service-layer errors from ``core.domain.exceptions`` and model-level
``django.core.exceptions.ValidationError`` are turned into a JSON body
of the form ``{"detail": "<message>"}`` with the status code listed in
``_STATUS_MAP``.  Everything DRF already understands (authentication,
serializer validation, throttling) keeps DRF's own rendering.

Wired up through ``REST_FRAMEWORK["EXCEPTION_HANDLER"]`` in settings.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as ModelValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    Conflict,
    DomainError,
    ExternalServiceError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses must precede DomainError.
_STATUS_MAP: dict[type, int] = {
    PermissionDenied:     403,
    NotFound:             404,
    InvalidTransition:    409,
    Conflict:             409,
    ExternalServiceError: 502,
    DomainError:          400,
}


def _status_for(exc: Exception) -> int | None:
    for exc_class, status_code in _STATUS_MAP.items():
        if isinstance(exc, exc_class):
            return status_code
    return None


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """Render *exc* as ``{"detail": ...}``, or return ``None`` to let it propagate."""
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    view_name = type(context.get("view")).__name__ if context.get("view") else "unknown"

    if isinstance(exc, ModelValidationError):
        logger.warning("Model validation failed in %s: %s", view_name, exc.messages)
        return Response({"detail": " ".join(exc.messages)}, status=400)

    status_code = _status_for(exc)
    if status_code is None:
        return None

    log = logger.error if status_code >= 500 else logger.warning
    log("%s in %s: %s", type(exc).__name__, view_name, exc)
    return Response({"detail": str(exc)}, status=status_code)
