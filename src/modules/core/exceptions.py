"""DRF exception handler rendering one error envelope for the whole API.

Every error raised through DRF (authentication, throttling, parse and
validation errors) is returned as::

    {"type": "client_error", "errors": [{"code": "...", "detail": "...", "attr": ...}]}

Views that answer with ``{"detail": ...}`` themselves are left untouched.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from rest_framework.exceptions import APIException, ErrorDetail
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


def _flatten(detail: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    if isinstance(detail, dict):
        errors: List[Dict[str, Any]] = []
        for key, value in detail.items():
            name = key if attr is None else f"{attr}.{key}"
            errors.extend(_flatten(value, None if key == "non_field_errors" else name))
        return errors
    if isinstance(detail, list):
        errors = []
        for item in detail:
            errors.extend(_flatten(item, attr))
        return errors
    code = getattr(detail, "code", None) if isinstance(detail, ErrorDetail) else None
    return [{"code": code or "error", "detail": str(detail), "attr": attr}]


def standard_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    response = exception_handler(exc, context)
    if response is None:
        return None

    error_type = "server_error" if response.status_code >= 500 else "client_error"
    if isinstance(exc, APIException):
        detail = exc.detail
    else:
        detail = response.data.get("detail", response.data)

    view = context.get("view")
    logger.warning(
        "api.error",
        status_code=response.status_code,
        view=type(view).__name__ if view is not None else None,
        error_type=error_type,
    )
    response.data = {"type": error_type, "errors": _flatten(detail)}
    return response
