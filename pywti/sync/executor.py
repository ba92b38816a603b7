"""Execution of single file transfers with bounded retry.

Every operation sends one request and retries it only when the transport
times out. Any other failure ends the operation at once. A request that
round-trips counts as a success whatever its HTTP status; the status is
only turned into display text.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Callable, Optional

import httpx

from ..api import ErrorKind, TransportResult, WtiClient
from ..output import OutputFormatter, format_response
from ..utils import (
    MAX_TRIES,
    RETRY_DELAY,
    UPLOAD_CONTENT_TYPE,
    checksum_bytes,
    form_value,
)
from .operations import SyncOperation, UploadOptions, operation_url
from .state import FileDescriptor

logger = logging.getLogger(__name__)

TIMEOUT_NOTICE = "Request timeout. Will retry in 5 seconds."


class AttemptStatus(str, Enum):
    """Outcome of a single attempt."""

    SUCCESS = "success"
    """The request round-tripped and its result was processed"""

    RETRYABLE = "retryable"
    """The transport timed out"""

    FATAL = "fatal"
    """Any other error, not worth retrying"""


@dataclass(frozen=True)
class AttemptResult:
    """Result of one attempt of an operation."""

    status: AttemptStatus
    message: str = ""
    """Status line of the response or error description"""

    descriptor: Optional[FileDescriptor] = None
    """Descriptor snapshot after a successful attempt"""

    status_code: Optional[int] = None
    """HTTP status of the response"""


@dataclass(frozen=True)
class TransferResult:
    """Overall result of an operation on one file."""

    operation: SyncOperation
    descriptor: FileDescriptor
    """Descriptor snapshot after the operation"""

    success: bool
    status: str
    """Human-readable status: response status line or error"""

    attempts: int = 0
    """Number of requests sent"""

    status_code: Optional[int] = None
    """HTTP status of the last response, if one was received"""


def _precondition_message(
    operation: SyncOperation, descriptor: FileDescriptor
) -> str:
    path = descriptor.local_path
    if operation is SyncOperation.UPLOAD:
        return f"Can't push {path}. File doesn't exist locally."
    if operation is SyncOperation.DELETE:
        return f"Master file {path} doesn't exist locally!"
    return f"File {path} doesn't exist locally!"


class TransferExecutor:
    """Performs fetch, upload, create and delete requests for files."""

    def __init__(self, client: WtiClient, output: Optional[OutputFormatter] = None):
        """Initialize the executor.

        Args:
            client: API client used as transport
            output: Output formatter for retry notices
        """
        self.client = client
        self.output = output or OutputFormatter()

    def run(
        self,
        operation: SyncOperation,
        descriptor: FileDescriptor,
        options: Optional[UploadOptions] = None,
    ) -> TransferResult:
        """Execute one operation on a file.

        Args:
            operation: Operation to perform
            descriptor: File to operate on
            options: Upload flags (upload and create only)

        Returns:
            TransferResult describing the outcome
        """
        options = options or UploadOptions()

        if operation.requires_local_file and not descriptor.exists():
            message = _precondition_message(operation, descriptor)
            logger.debug(f"{operation.value} {descriptor.local_path}: {message}")
            return TransferResult(operation, descriptor, False, message, attempts=0)

        attempt: Callable[[], AttemptResult]
        if operation is SyncOperation.FETCH:
            attempt = partial(self._fetch_once, descriptor)
        elif operation is SyncOperation.UPLOAD:
            attempt = partial(self._upload_once, descriptor, options)
        elif operation is SyncOperation.CREATE:
            attempt = partial(self._create_once, descriptor, options)
        else:
            attempt = partial(self._delete_once, descriptor)

        return self._run_with_retry(operation, descriptor, attempt)

    def fetch(self, descriptor: FileDescriptor) -> TransferResult:
        """Download a file, writing it locally only on a 200 response."""
        return self.run(SyncOperation.FETCH, descriptor)

    def upload(
        self, descriptor: FileDescriptor, options: Optional[UploadOptions] = None
    ) -> TransferResult:
        """Upload a local file over its remote counterpart.

        Note that the API processes imports in the background, so a
        successful response does not mean the import has been applied.
        """
        return self.run(SyncOperation.UPLOAD, descriptor, options)

    def create(
        self,
        descriptor: FileDescriptor,
        low_priority: bool = False,
        name: Optional[str] = None,
    ) -> TransferResult:
        """Create a new master file from a local file.

        Args:
            descriptor: Local file to create remotely
            low_priority: Process the import in the low-priority queue
            name: Remote file name (defaults to the local path)
        """
        options = UploadOptions(low_priority=low_priority, destination_path=name)
        return self.run(SyncOperation.CREATE, descriptor, options)

    def delete(self, descriptor: FileDescriptor) -> TransferResult:
        """Delete a master file from the project."""
        return self.run(SyncOperation.DELETE, descriptor)

    # =========================
    # Retry loop
    # =========================

    def _run_with_retry(
        self,
        operation: SyncOperation,
        descriptor: FileDescriptor,
        attempt: Callable[[], AttemptResult],
    ) -> TransferResult:
        """Run attempts until one succeeds, fails fatally or tries run out."""
        result = AttemptResult(AttemptStatus.FATAL, "No attempt made")
        tries = 0

        for tries in range(1, MAX_TRIES + 1):
            logger.debug(
                f"{operation.value} {descriptor.local_path}: "
                f"attempt {tries}/{MAX_TRIES}"
            )
            result = attempt()
            if result.status is not AttemptStatus.RETRYABLE:
                break
            self.output.error(TIMEOUT_NOTICE)
            if tries < MAX_TRIES:
                time.sleep(RETRY_DELAY)

        if result.status is AttemptStatus.SUCCESS:
            return TransferResult(
                operation,
                result.descriptor or descriptor,
                True,
                result.message,
                attempts=tries,
                status_code=result.status_code,
            )

        logger.debug(
            f"{operation.value} {descriptor.local_path} failed after "
            f"{tries} attempt(s): {result.message}"
        )
        return TransferResult(operation, descriptor, False, result.message, tries)

    def _transport_failure(self, result: TransportResult) -> AttemptResult:
        if result.error_kind is ErrorKind.TIMEOUT:
            return AttemptResult(AttemptStatus.RETRYABLE, "Request timeout")
        return AttemptResult(
            AttemptStatus.FATAL, f"An error occurred: {result.error}"
        )

    # =========================
    # Single attempts
    # =========================

    def _fetch_once(self, descriptor: FileDescriptor) -> AttemptResult:
        url = operation_url(SyncOperation.FETCH, descriptor)
        result = self.client.send(SyncOperation.FETCH.method, url)
        if not result.ok:
            return self._transport_failure(result)

        response = result.response
        new_descriptor = descriptor
        # Only a full 200 carries new content; a 304 must leave the file alone
        if response.status_code == 200:
            try:
                self._write_local(descriptor, response)
            except OSError as e:
                return AttemptResult(AttemptStatus.FATAL, f"An error occurred: {e}")
            new_descriptor = descriptor.with_sync_state(
                remote_checksum=checksum_bytes(response.content)
            )

        return AttemptResult(
            AttemptStatus.SUCCESS,
            format_response(response),
            new_descriptor,
            response.status_code,
        )

    def _write_local(
        self, descriptor: FileDescriptor, response: httpx.Response
    ) -> None:
        path = descriptor.local_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(response.content)
        logger.debug(f"Wrote {len(response.content)} bytes to {path}")

    def _file_part(self, descriptor: FileDescriptor) -> dict[str, Any]:
        """Build the multipart file part. Raises OSError if unreadable."""
        content = descriptor.local_path.read_bytes()
        return {"file": (str(descriptor.local_path), content, UPLOAD_CONTENT_TYPE)}

    def _send_form(
        self,
        method: str,
        url: str,
        descriptor: FileDescriptor,
        fields: dict[str, Any],
    ) -> AttemptResult:
        try:
            files = self._file_part(descriptor)
        except OSError as e:
            return AttemptResult(AttemptStatus.FATAL, f"An error occurred: {e}")

        data = {name: form_value(value) for name, value in fields.items()}
        result = self.client.send(method, url, files=files, data=data)
        if not result.ok:
            return self._transport_failure(result)
        return self._completed(result.response, descriptor)

    def _upload_once(
        self, descriptor: FileDescriptor, options: UploadOptions
    ) -> AttemptResult:
        fields: dict[str, Any] = {
            "merge": options.merge,
            "ignore_missing": options.ignore_missing,
            "label": options.label,
            "low_priority": options.low_priority,
            "minor_changes": options.minor_changes,
        }
        if options.destination_path is not None:
            fields["name"] = options.destination_path
        fields["rename_others"] = options.rename_others
        url = operation_url(SyncOperation.UPLOAD, descriptor)
        return self._send_form(SyncOperation.UPLOAD.method, url, descriptor, fields)

    def _create_once(
        self, descriptor: FileDescriptor, options: UploadOptions
    ) -> AttemptResult:
        fields = {
            "name": options.destination_path or str(descriptor.local_path),
            "low_priority": options.low_priority,
        }
        url = operation_url(SyncOperation.CREATE, descriptor)
        return self._send_form(SyncOperation.CREATE.method, url, descriptor, fields)

    def _delete_once(self, descriptor: FileDescriptor) -> AttemptResult:
        url = operation_url(SyncOperation.DELETE, descriptor)
        result = self.client.send(SyncOperation.DELETE.method, url)
        if not result.ok:
            return self._transport_failure(result)
        return self._completed(result.response, descriptor)

    def _completed(
        self, response: httpx.Response, descriptor: FileDescriptor
    ) -> AttemptResult:
        return AttemptResult(
            AttemptStatus.SUCCESS,
            format_response(response),
            descriptor,
            response.status_code,
        )
