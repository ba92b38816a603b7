"""Utility functions for pywti."""

import hashlib
from pathlib import Path
from typing import Union

# =============================================================================
# Constants for transfer operations
# =============================================================================

# Number of attempts for a single request when the transport times out
MAX_TRIES: int = 3

# Wait between attempts after a timeout (seconds)
RETRY_DELAY: float = 5.0

# Default transport timeout for API requests (seconds)
DEFAULT_TIMEOUT: float = 30.0

# Content type of the file part in multipart uploads
UPLOAD_CONTENT_TYPE: str = "text/plain"


# =============================================================================
# Checksum utilities
# =============================================================================

# Checksum of a file that is missing or cannot be read. A SHA-1 hex digest
# is always 40 characters long, so this never equals a real checksum.
EMPTY_CHECKSUM: str = ""

# Number of leading checksum characters shown in listings
CHECKSUM_DISPLAY_LENGTH: int = 5


def checksum_bytes(data: bytes) -> str:
    """Calculate the checksum of a byte string.

    Args:
        data: Content to hash

    Returns:
        SHA-1 hex digest

    Examples:
        >>> checksum_bytes(b"hello")
        'aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d'
    """
    return hashlib.sha1(data).hexdigest()


def checksum_file(path: Union[str, Path]) -> str:
    """Calculate the checksum of a file's content.

    Args:
        path: Path to the file

    Returns:
        SHA-1 hex digest

    Raises:
        OSError: If the file cannot be read
    """
    with open(path, "rb") as f:
        return checksum_bytes(f.read())


def checksumify(checksum: str) -> str:
    """Shorten a checksum for display.

    Args:
        checksum: Checksum value, possibly empty

    Returns:
        Bracketed prefix of the checksum, or blanks for an empty checksum

    Examples:
        >>> checksumify("aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d")
        '[aaf4c]'
        >>> checksumify("")
        '[     ]'
    """
    if not checksum:
        return "[" + " " * CHECKSUM_DISPLAY_LENGTH + "]"
    return f"[{checksum[:CHECKSUM_DISPLAY_LENGTH]}]"


# =============================================================================
# Form encoding utilities
# =============================================================================


def form_value(value: object) -> str:
    """Convert a configuration value to a multipart form field value.

    Args:
        value: Value passed through from the caller

    Returns:
        String sent over the wire ("true"/"false" for booleans, "" for None)

    Examples:
        >>> form_value(True)
        'true'
        >>> form_value(None)
        ''
        >>> form_value("v1.2")
        'v1.2'
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# =============================================================================
# Path utilities
# =============================================================================


def remote_name(path: Union[str, Path], base_dir: Union[str, Path]) -> str:
    """Name of a local file inside the project, relative to the base directory.

    Project file names are joined under the base directory when listed, so
    this is the inverse of that join.

    Args:
        path: Local file path (absolute or relative to the working directory)
        base_dir: Directory the project file names are relative to

    Returns:
        POSIX-style relative path

    Raises:
        ValueError: If the file is not inside the base directory

    Examples:
        >>> remote_name("proj/config/en.yml", "proj")
        'config/en.yml'
    """
    resolved = Path(path).resolve()
    base = Path(base_dir).resolve()
    try:
        return resolved.relative_to(base).as_posix()
    except ValueError:
        raise ValueError(f"{path} is not inside {base_dir}") from None
