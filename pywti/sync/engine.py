"""Sync engine: runs the decision and the transfer for each file."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Optional

from ..api import WtiClient
from ..output import OutputFormatter
from ..utils import EMPTY_CHECKSUM, remote_name
from .executor import TransferExecutor, TransferResult
from .operations import SyncOperation, UploadOptions
from .state import (
    FileDescriptor,
    SyncDecision,
    checksum_pair,
    compute_local_checksum,
    decide,
)

logger = logging.getLogger(__name__)

SKIPPED = "Skipped"


class SyncEngine:
    """Synchronizes a set of files, one independent operation per file."""

    def __init__(
        self,
        client: WtiClient,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            client: API client
            output: Output formatter for displaying progress/status
        """
        self.client = client
        self.output = output or OutputFormatter()
        self.executor = TransferExecutor(client, self.output)

    # =========================
    # Commands
    # =========================

    def pull(
        self,
        descriptors: list[FileDescriptor],
        force: bool = False,
        max_workers: int = 1,
    ) -> dict:
        """Fetch every file whose local copy differs from the remote one.

        Args:
            descriptors: Files to pull
            force: Download even if the checksums match
            max_workers: Number of parallel workers (default: 1)

        Returns:
            Dictionary with sync statistics

        Examples:
            >>> engine = SyncEngine(client)
            >>> stats = engine.pull(descriptors)
            >>> print(f"Fetched {stats['transferred']} files")
        """

        def pull_one(descriptor: FileDescriptor) -> TransferResult:
            local_checksum = compute_local_checksum(descriptor.local_path)
            if decide(descriptor, force) is SyncDecision.SKIP:
                result = TransferResult(
                    SyncOperation.FETCH, descriptor, True, SKIPPED
                )
            else:
                result = self.executor.fetch(descriptor)
            path = str(descriptor.local_path)
            if not descriptor.is_fresh:
                path = f"*{path}"
            self.output.columns(
                path,
                checksum_pair(local_checksum, descriptor.remote_checksum),
                result.status,
                result.success,
            )
            return result

        return self._run_all(
            SyncOperation.FETCH, descriptors, pull_one, max_workers
        )

    def push(
        self,
        descriptors: list[FileDescriptor],
        force: bool = False,
        options: Optional[UploadOptions] = None,
        max_workers: int = 1,
    ) -> dict:
        """Upload every file whose local copy differs from the remote one.

        Args:
            descriptors: Files to push
            force: Upload even if the checksums match
            options: Flags forwarded to the API
            max_workers: Number of parallel workers (default: 1)

        Returns:
            Dictionary with sync statistics
        """

        def push_one(descriptor: FileDescriptor) -> TransferResult:
            if not descriptor.exists():
                result = self.executor.upload(descriptor, options)
                self.output.error(result.status)
                return result

            local_checksum = compute_local_checksum(descriptor.local_path)
            if decide(descriptor, force) is SyncDecision.SKIP:
                result = TransferResult(
                    SyncOperation.UPLOAD, descriptor, True, SKIPPED
                )
            else:
                result = self.executor.upload(descriptor, options)
            self.output.columns(
                str(descriptor.local_path),
                checksum_pair(local_checksum, descriptor.remote_checksum),
                result.status,
                result.success,
            )
            return result

        return self._run_all(
            SyncOperation.UPLOAD, descriptors, push_one, max_workers
        )

    def add(
        self,
        descriptors: list[FileDescriptor],
        low_priority: bool = False,
        base_dir: Optional[Path] = None,
    ) -> dict:
        """Create new master files from local files.

        Args:
            descriptors: Master files to create
            low_priority: Process the imports in the low-priority queue
            base_dir: Directory the remote names are relative to. Without it
                the local path is sent as the name.

        Returns:
            Dictionary with sync statistics
        """

        def add_one(descriptor: FileDescriptor) -> TransferResult:
            name = None
            if base_dir is not None:
                try:
                    name = remote_name(descriptor.local_path, base_dir)
                except ValueError as e:
                    result = TransferResult(
                        SyncOperation.CREATE, descriptor, False, str(e)
                    )
                    self.output.error(result.status)
                    return result
            result = self.executor.create(
                descriptor, low_priority=low_priority, name=name
            )
            if result.attempts == 0:
                self.output.error(result.status)
                return result
            self.output.columns(
                str(descriptor.local_path),
                checksum_pair(
                    compute_local_checksum(descriptor.local_path), EMPTY_CHECKSUM
                ),
                result.status,
                result.success,
            )
            return result

        return self._run_all(
            SyncOperation.CREATE, descriptors, add_one, max_workers=1
        )

    def remove(self, descriptors: list[FileDescriptor]) -> dict:
        """Delete master files from the project.

        Args:
            descriptors: Master files to delete

        Returns:
            Dictionary with sync statistics
        """

        def remove_one(descriptor: FileDescriptor) -> TransferResult:
            result = self.executor.delete(descriptor)
            if result.attempts == 0:
                self.output.error(result.status)
                return result
            self.output.columns(
                str(descriptor.local_path), "", result.status, result.success
            )
            return result

        return self._run_all(
            SyncOperation.DELETE, descriptors, remove_one, max_workers=1
        )

    def status(self, descriptors: list[FileDescriptor]) -> dict:
        """Show which files would be transferred, without any request.

        Args:
            descriptors: Files to inspect

        Returns:
            Dictionary with counts of files in sync and out of sync
        """
        stats = {"total": len(descriptors), "in_sync": 0, "out_of_sync": 0}
        for descriptor in descriptors:
            local_checksum = compute_local_checksum(descriptor.local_path)
            if decide(descriptor) is SyncDecision.SKIP:
                stats["in_sync"] += 1
                label = "In sync"
            else:
                stats["out_of_sync"] += 1
                label = "Missing" if not descriptor.exists() else "Modified"
            path = str(descriptor.local_path)
            if not descriptor.is_fresh:
                path = f"*{path}"
            self.output.columns(
                path,
                checksum_pair(local_checksum, descriptor.remote_checksum),
                label,
                True,
            )
        return stats

    # =========================
    # Execution
    # =========================

    def _run_all(
        self,
        operation: SyncOperation,
        descriptors: list[FileDescriptor],
        run_one: Callable[[FileDescriptor], TransferResult],
        max_workers: int,
    ) -> dict:
        """Run one operation per descriptor, serially or in a thread pool.

        A failure on one file never stops the others.

        Raises:
            ValueError: If two descriptors share a local path
        """
        seen: set = set()
        for descriptor in descriptors:
            key = descriptor.local_path.resolve()
            if key in seen:
                raise ValueError(
                    f"Duplicate local path in sync run: {descriptor.local_path}"
                )
            seen.add(key)

        logger.debug(
            f"{operation.value} {len(descriptors)} file(s) "
            f"with {max_workers} worker(s)"
        )
        results: list[Optional[TransferResult]] = [None] * len(descriptors)

        def run_with_timing(index: int) -> tuple[int, TransferResult, float]:
            descriptor = descriptors[index]
            start = time.time()
            try:
                result = run_one(descriptor)
            except Exception as e:
                logger.debug(
                    f"Unexpected error on {descriptor.local_path}", exc_info=True
                )
                result = TransferResult(
                    operation, descriptor, False, f"An error occurred: {e}"
                )
                self.output.error(f"{descriptor.local_path}: {result.status}")
            return index, result, time.time() - start

        if max_workers <= 1:
            for index in range(len(descriptors)):
                _, results[index], elapsed = run_with_timing(index)
                logger.debug(f"Done {descriptors[index].local_path} in {elapsed:.2f}s")
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                futures = [
                    pool.submit(run_with_timing, index)
                    for index in range(len(descriptors))
                ]
                for future in as_completed(futures):
                    index, result, elapsed = future.result()
                    results[index] = result
                    logger.debug(
                        f"Done {descriptors[index].local_path} in {elapsed:.2f}s"
                    )

        done = [r for r in results if r is not None]
        return self._build_stats(done)

    def _build_stats(self, results: list[TransferResult]) -> dict:
        stats: dict = {
            "total": len(results),
            "transferred": 0,
            "skipped": 0,
            "failed": 0,
            "not_modified": 0,
            "rejected": 0,
            "results": results,
            "descriptors": [r.descriptor for r in results],
        }
        for result in results:
            if not result.success:
                stats["failed"] += 1
            elif result.status == SKIPPED:
                stats["skipped"] += 1
            elif result.status_code == 304:
                stats["not_modified"] += 1
            elif result.status_code is not None and result.status_code >= 400:
                stats["rejected"] += 1
            else:
                stats["transferred"] += 1
        return stats

    def display_summary(self, stats: dict) -> None:
        """Display a summary of a sync run.

        Args:
            stats: Statistics dictionary returned by a command
        """
        if self.output.quiet:
            return
        self.output.print("")
        if stats["failed"]:
            self.output.error(
                f"{stats['failed']} of {stats['total']} file(s) failed"
            )
        elif stats.get("rejected"):
            self.output.warning(
                f"{stats['rejected']} of {stats['total']} file(s) "
                "rejected by the server"
            )
        elif stats["transferred"] == 0:
            self.output.info("No changes needed - everything is in sync!")
        else:
            self.output.success(f"Transferred {stats['transferred']} file(s)")
