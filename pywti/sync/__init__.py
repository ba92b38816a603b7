"""Sync engine for pywti - checksum-gated fetch/upload/create/delete."""

from .engine import SyncEngine
from .executor import (
    AttemptResult,
    AttemptStatus,
    TransferExecutor,
    TransferResult,
)
from .operations import SyncOperation, UploadOptions
from .state import (
    FileDescriptor,
    SyncDecision,
    checksum_pair,
    compute_local_checksum,
    decide,
    should_transfer,
)

__all__ = [
    "SyncEngine",
    "TransferExecutor",
    "TransferResult",
    "AttemptResult",
    "AttemptStatus",
    "SyncOperation",
    "UploadOptions",
    "FileDescriptor",
    "SyncDecision",
    "checksum_pair",
    "compute_local_checksum",
    "decide",
    "should_transfer",
]
