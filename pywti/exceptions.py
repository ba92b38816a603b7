"""Exceptions raised by pywti."""


class WtiError(Exception):
    """Base exception for all pywti errors."""


class WtiConfigError(WtiError):
    """Raised when configuration is missing or invalid."""


class WtiAPIError(WtiError):
    """Raised when the API answers a request with an error."""


class WtiNetworkError(WtiAPIError):
    """Raised when a request could not be completed at the transport level."""


class WtiInvalidResponseError(WtiAPIError):
    """Raised when the API returns a response that cannot be parsed."""

