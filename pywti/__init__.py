"""pywti - Sync translation files with WebTranslateIt."""

__version__ = "0.1.0"

from .api import ErrorKind, TransportResult, WtiClient  # noqa: E402
from .exceptions import (  # noqa: E402
    WtiAPIError,
    WtiConfigError,
    WtiError,
    WtiInvalidResponseError,
    WtiNetworkError,
)
from .utils import EMPTY_CHECKSUM, checksum_bytes, checksum_file  # noqa: E402

__all__ = [
    "WtiClient",
    "ErrorKind",
    "TransportResult",
    "WtiError",
    "WtiAPIError",
    "WtiConfigError",
    "WtiInvalidResponseError",
    "WtiNetworkError",
    "EMPTY_CHECKSUM",
    "checksum_bytes",
    "checksum_file",
]
