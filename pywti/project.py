"""Project file listing: turns the remote project into FileDescriptors."""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from .api import WtiClient
from .exceptions import WtiInvalidResponseError
from .sync.state import FileDescriptor
from .utils import EMPTY_CHECKSUM

logger = logging.getLogger(__name__)


def descriptor_from_entry(
    entry: dict[str, Any], project_key: str, base_path: Optional[Path] = None
) -> FileDescriptor:
    """Build a descriptor from one ``project_files`` entry.

    Args:
        entry: File entry of the project listing
        project_key: Project API key
        base_path: Directory the remote file names are relative to

    Returns:
        FileDescriptor for the entry

    Raises:
        WtiInvalidResponseError: If the entry lacks an id or a name
    """
    if "id" not in entry or not entry.get("name"):
        raise WtiInvalidResponseError(f"Malformed project file entry: {entry!r}")

    local_path = Path(entry["name"])
    if base_path is not None:
        local_path = base_path / local_path

    return FileDescriptor(
        id=entry["id"],
        local_path=local_path,
        locale=entry.get("locale_code"),
        project_key=project_key,
        remote_checksum=entry.get("hash_file") or EMPTY_CHECKSUM,
        is_fresh=entry.get("fresh"),
        master_id=entry.get("master_project_file_id"),
        updated_at=entry.get("updated_at"),
    )


def list_project_files(
    client: WtiClient, base_path: Optional[Path] = None
) -> list[FileDescriptor]:
    """Fetch the project and return one descriptor per file and locale.

    Args:
        client: API client
        base_path: Directory the remote file names are relative to

    Returns:
        List of FileDescriptor objects
    """
    project = client.get_project()
    entries = project.get("project_files") or []
    if not isinstance(entries, list):
        raise WtiInvalidResponseError("project_files is not a list")

    descriptors = [
        descriptor_from_entry(entry, client.api_key, base_path) for entry in entries
    ]
    logger.debug(f"Project lists {len(descriptors)} file(s)")
    return descriptors


def select_files(
    descriptors: Iterable[FileDescriptor],
    locales: Optional[Iterable[str]] = None,
    include_master: bool = False,
    include_targets: bool = True,
) -> list[FileDescriptor]:
    """Filter descriptors by kind and locale.

    Args:
        descriptors: Descriptors to filter
        locales: Only keep files for these locale codes (all if None)
        include_master: Keep master files
        include_targets: Keep target (translation) files

    Returns:
        Filtered list, in input order
    """
    wanted = set(locales) if locales else None
    selected = []
    for descriptor in descriptors:
        if descriptor.is_master and not include_master:
            continue
        if not descriptor.is_master and not include_targets:
            continue
        if wanted is not None and descriptor.locale not in wanted:
            continue
        selected.append(descriptor)
    return selected


def find_master(
    descriptors: Iterable[FileDescriptor], local_path: Path
) -> Optional[FileDescriptor]:
    """Find the master file descriptor for a local path."""
    target = local_path.resolve()
    for descriptor in descriptors:
        if descriptor.is_master and descriptor.local_path.resolve() == target:
            return descriptor
    return None
