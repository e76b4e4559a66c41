# app/core/errors.py
"""
Exception hierarchy for the pinning API.

Controllers and the router map these onto HTTP status codes:

- ValidationError      -> 400 (missing required body field)
- DecodeError          -> 500 (malformed or oversized data URI)
- ProviderError        -> 500 (Pinata failure, incl. MissingContentId/ProviderTimeout)
- ConfigurationError   -> 500 (credentials absent, unknown adapter)
- AuthorizationError   -> 405 (origin not allowed)
- RoutingError         -> 404 / 400 (no matching route / empty path)

Messages of DecodeError subclasses are returned to callers verbatim, so
they must stay stable.
"""
from typing import Optional


class PinningAPIError(Exception):
    """Base class for all errors raised by this service."""
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PinningAPIError):
    status_code = 400


class DecodeError(PinningAPIError, ValueError):
    """The data URI could not be turned into a payload."""


class InvalidFormat(DecodeError):
    pass


class EmptyPayload(DecodeError):
    pass


class InvalidEncoding(DecodeError):
    pass


class PayloadTooLarge(DecodeError):
    pass


class ConfigurationError(PinningAPIError):
    pass


class ProviderError(PinningAPIError):
    """Pinata rejected the request or returned something unusable."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None
    ):
        super().__init__(message)
        self.provider_status = status_code
        self.body = body


class MissingContentId(ProviderError):
    pass


class ProviderTimeout(ProviderError):
    pass


class AuthorizationError(PinningAPIError):
    status_code = 405


class RoutingError(PinningAPIError):

    def __init__(self, message: str, status_code: int = 404):
        super().__init__(message)
        self.status_code = status_code
