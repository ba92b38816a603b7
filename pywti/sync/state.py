"""Per-file sync state and the skip/transfer decision.

A FileDescriptor is a snapshot of what is known about one translation
file: where it lives locally, which remote file and locale it maps to,
and the remote checksum recorded by the last listing. The decision
functions compare that remote checksum with a checksum of the local
file computed fresh on every call.
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..utils import EMPTY_CHECKSUM, checksum_file, checksumify

logger = logging.getLogger(__name__)


class SyncDecision(str, Enum):
    """Whether a file needs a transfer."""

    SKIP = "skip"
    """Local and remote content are identical"""

    TRANSFER = "transfer"
    """Content differs, the local file is missing, or a transfer is forced"""


@dataclass(frozen=True)
class FileDescriptor:
    """Identifies one synchronizable file.

    Descriptors are immutable; use ``with_sync_state`` to derive the
    snapshot that follows a transfer.
    """

    id: Optional[int]
    """Remote file identifier (None for master files not created yet)"""

    local_path: Path
    """Path of the local copy"""

    locale: Optional[str]
    """Locale code of the file, None for a master file"""

    project_key: str
    """Project API key"""

    remote_checksum: str = EMPTY_CHECKSUM
    """Last known checksum of the remote content"""

    is_fresh: Optional[bool] = None
    """Whether the remote file is up to date with its master (display only)"""

    master_id: Optional[int] = None
    """Identifier of the master file this file translates"""

    updated_at: Optional[str] = None
    """ISO timestamp of the last remote change"""

    def __post_init__(self) -> None:
        if not isinstance(self.local_path, Path):
            object.__setattr__(self, "local_path", Path(self.local_path))

    @property
    def is_master(self) -> bool:
        """Whether this is a master (source language) file."""
        return self.locale is None or self.master_id is None

    def exists(self) -> bool:
        """Check whether the local copy exists.

        A path that cannot be inspected (permission denied on a parent
        directory, name too long) counts as missing.
        """
        try:
            return self.local_path.is_file()
        except OSError as e:
            logger.debug(f"Cannot stat {self.local_path}: {e}")
            return False

    def with_sync_state(
        self,
        remote_checksum: Optional[str] = None,
        is_fresh: Optional[bool] = None,
    ) -> "FileDescriptor":
        """Return a copy carrying new sync bookkeeping.

        Args:
            remote_checksum: New remote checksum (unchanged if None)
            is_fresh: New freshness flag (unchanged if None)

        Returns:
            New FileDescriptor
        """
        changes: dict = {}
        if remote_checksum is not None:
            changes["remote_checksum"] = remote_checksum
        if is_fresh is not None:
            changes["is_fresh"] = is_fresh
        return dataclasses.replace(self, **changes)


def compute_local_checksum(path: Union[str, Path]) -> str:
    """Checksum the current content of a local file.

    Args:
        path: Path to the local file

    Returns:
        SHA-1 hex digest, or EMPTY_CHECKSUM if the file is missing or
        cannot be read
    """
    try:
        return checksum_file(path)
    except OSError as e:
        logger.debug(f"Cannot checksum {path}: {e}")
        return EMPTY_CHECKSUM


def decide(descriptor: FileDescriptor, force: bool = False) -> SyncDecision:
    """Decide whether a file must be transferred.

    Args:
        descriptor: File to check
        force: Transfer even if the checksums match

    Returns:
        SyncDecision.TRANSFER if the local file is missing, ``force`` is set
        or the checksums differ, SyncDecision.SKIP otherwise
    """
    if not descriptor.exists():
        return SyncDecision.TRANSFER
    if force:
        return SyncDecision.TRANSFER
    local_checksum = compute_local_checksum(descriptor.local_path)
    if descriptor.remote_checksum != local_checksum:
        logger.debug(
            f"{descriptor.local_path}: local {local_checksum!r} "
            f"!= remote {descriptor.remote_checksum!r}"
        )
        return SyncDecision.TRANSFER
    return SyncDecision.SKIP


def should_transfer(descriptor: FileDescriptor, force: bool = False) -> bool:
    """Return True if ``decide`` says the file must be transferred."""
    return decide(descriptor, force) is SyncDecision.TRANSFER


def checksum_pair(local_checksum: str, remote_checksum: str) -> str:
    """Format a local/remote checksum pair for display.

    Examples:
        >>> checksum_pair("aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d", "")
        '[aaf4c]..[     ]'
    """
    return f"{checksumify(local_checksum)}..{checksumify(remote_checksum)}"
