"""Error kinds shared by every storefront module.

Services raise subclasses of these four kinds when a business rule is
violated.  Each error names the resource, the identifier involved and a
readable reason, so the HTTP layer can render a precise message without
inspecting the service that raised it.

Anything that is not a ``DomainError`` is an unexpected internal failure
and is left to propagate.
"""

from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base class for business-rule failures returned to the caller."""

    code: str = "domain_error"

    def __init__(
        self,
        message: str,
        *,
        resource: Optional[str] = None,
        identifier: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.resource = resource
        self.identifier = None if identifier is None else str(identifier)


class NotFound(DomainError):
    """A referenced product, cart line or order does not exist."""

    code = "not_found"


class InsufficientStock(DomainError):
    """Requested quantity exceeds the stock available at the check point."""

    code = "insufficient_stock"

    def __init__(
        self,
        message: str,
        *,
        resource: Optional[str] = "product",
        identifier: Any = None,
        requested: Optional[int] = None,
        available: Optional[int] = None,
    ) -> None:
        super().__init__(message, resource=resource, identifier=identifier)
        self.requested = requested
        self.available = available


class InvalidOperation(DomainError):
    """Illegal transition, empty checkout, cross-session access, inactive product."""

    code = "invalid_operation"


class ConcurrencyConflict(DomainError):
    """Optimistic-concurrency retries were exhausted; the caller may retry."""

    code = "concurrency_conflict"
    retryable = True
