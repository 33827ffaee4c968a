"""Exception taxonomy for ContentKit.

- `ValidationError`: a query was built with bad values; raised at build time.
- `MalformedResponseError`: a payload does not have the expected shape.
- `TransportError`: the HTTP layer failed (network, status, auth).
- `ResourceNotFoundError`: a single-resource lookup matched nothing.
"""

from __future__ import annotations


class ContentKitError(Exception):
    """Base class for all ContentKit errors."""


class ValidationError(ContentKitError, ValueError):
    """Raised when a query is constructed with invalid arguments."""


class MalformedResponseError(ContentKitError, ValueError):
    """Raised when a response payload violates the expected shape."""


class TransportError(ContentKitError):
    """Raised when the HTTP request failed.

    Attributes:
        status_code: HTTP status code if a response was received.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResourceNotFoundError(ContentKitError, LookupError):
    """Raised when a requested entry, asset or content type does not exist."""
