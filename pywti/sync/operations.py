"""Transfer operations and the API endpoints they target."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .state import FileDescriptor


class SyncOperation(str, Enum):
    """Network operations that can be performed on a file."""

    FETCH = "fetch"
    """Download the remote file for a locale (GET)"""

    UPLOAD = "upload"
    """Replace the remote file for a locale (PUT)"""

    CREATE = "create"
    """Create a new master file (POST)"""

    DELETE = "delete"
    """Delete a master file and its translations (DELETE)"""

    @property
    def method(self) -> str:
        """HTTP method of the operation."""
        return _METHODS[self]

    @property
    def requires_local_file(self) -> bool:
        """Whether the local file must exist before the request is sent."""
        return self is not SyncOperation.FETCH


_METHODS = {
    SyncOperation.FETCH: "GET",
    SyncOperation.UPLOAD: "PUT",
    SyncOperation.CREATE: "POST",
    SyncOperation.DELETE: "DELETE",
}


@dataclass(frozen=True)
class UploadOptions:
    """Flags forwarded to the API with an upload.

    The values are sent as-is; the API validates them.
    """

    merge: bool = False
    """Merge the file with the existing remote content"""

    ignore_missing: bool = False
    """Keep remote segments missing from the uploaded file"""

    label: Optional[str] = None
    """Label applied to the new segments"""

    low_priority: bool = False
    """Process the import in the low-priority queue"""

    minor_changes: bool = False
    """Do not invalidate existing translations"""

    rename_others: bool = False
    """Rename the other locales' files along with this one"""

    destination_path: Optional[str] = None
    """New remote name for the file"""


def locale_file_url(descriptor: FileDescriptor) -> str:
    """Endpoint of a file for one locale (fetch and upload)."""
    return (
        f"/api/projects/{descriptor.project_key}/files/{descriptor.id}"
        f"/locales/{descriptor.locale}"
    )


def create_url(descriptor: FileDescriptor) -> str:
    """Endpoint for creating a master file."""
    return f"/api/projects/{descriptor.project_key}/files"


def delete_url(descriptor: FileDescriptor) -> str:
    """Endpoint of a master file (delete)."""
    return f"/api/projects/{descriptor.project_key}/files/{descriptor.id}"


def operation_url(operation: SyncOperation, descriptor: FileDescriptor) -> str:
    """Return the endpoint an operation targets for a descriptor."""
    if operation is SyncOperation.CREATE:
        return create_url(descriptor)
    if operation is SyncOperation.DELETE:
        return delete_url(descriptor)
    return locale_file_url(descriptor)
