"""DRF exception handler translating storefront errors into HTTP responses.

Every client-facing error uses the same body::

    {"type": "client_error", "errors": [{"code": ..., "detail": ..., "attr": ...}]}

Domain errors map to status codes by kind.  Exceptions DRF does not know
about (and that are not domain errors) are returned as ``None`` so Django
produces its generic 500: internal failures stay unstructured.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from modules.core.exceptions import (
    ConcurrencyConflict,
    DomainError,
    InsufficientStock,
    InvalidOperation,
    NotFound,
)

logger = structlog.get_logger(__name__)

_STATUS_BY_KIND = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (InsufficientStock, status.HTTP_409_CONFLICT),
    (ConcurrencyConflict, status.HTTP_409_CONFLICT),
    (InvalidOperation, status.HTTP_400_BAD_REQUEST),
)


def storefront_exception_handler(
    exc: Exception, context: Dict[str, Any]
) -> Optional[Response]:
    if isinstance(exc, DomainError):
        return _domain_error_response(exc)

    if isinstance(exc, PydanticValidationError):
        errors = [
            {
                "code": err["type"],
                "detail": err["msg"],
                "attr": ".".join(str(part) for part in err["loc"]) or None,
            }
            for err in exc.errors()
        ]
        return _body("validation_error", errors, status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        errors = _flatten_validation_detail(response.data)
        response.data = {"type": "validation_error", "errors": errors}
    else:
        code = getattr(exc, "default_code", "error")
        detail = response.data.get("detail", "") if isinstance(response.data, dict) else ""
        response.data = {
            "type": "client_error",
            "errors": [{"code": code, "detail": str(detail), "attr": None}],
        }
    return response


def _domain_error_response(exc: DomainError) -> Response:
    status_code = status.HTTP_400_BAD_REQUEST
    for kind, code in _STATUS_BY_KIND:
        if isinstance(exc, kind):
            status_code = code
            break

    error: Dict[str, Any] = {
        "code": exc.code,
        "detail": exc.message,
        "attr": None,
        "resource": exc.resource,
        "id": exc.identifier,
    }
    if isinstance(exc, InsufficientStock):
        error["requested"] = exc.requested
        error["available"] = exc.available

    logger.info(
        "api.domain_error",
        code=exc.code,
        resource=exc.resource,
        identifier=exc.identifier,
        status_code=status_code,
    )

    response = _body("client_error", [error], status_code)
    if isinstance(exc, ConcurrencyConflict):
        response.data["retryable"] = True
        response["Retry-After"] = "1"
    return response


def _body(kind: str, errors: List[Dict[str, Any]], status_code: int) -> Response:
    return Response({"type": kind, "errors": errors}, status=status_code)


def _flatten_validation_detail(data: Any, prefix: str = "") -> List[Dict[str, Any]]:
    """Flatten DRF's nested ``{field: [errors]}`` into a list of error dicts."""
    errors: List[Dict[str, Any]] = []
    if isinstance(data, dict):
        for key, value in data.items():
            attr = f"{prefix}.{key}" if prefix else str(key)
            errors.extend(_flatten_validation_detail(value, attr))
    elif isinstance(data, list):
        for index, value in enumerate(data):
            if isinstance(value, (dict, list)):
                errors.extend(_flatten_validation_detail(value, f"{prefix}.{index}"))
            else:
                errors.extend(_flatten_validation_detail(value, prefix))
    else:
        errors.append(
            {
                "code": getattr(data, "code", "invalid"),
                "detail": str(data),
                "attr": None if prefix in ("", "non_field_errors") else prefix,
            }
        )
    return errors
