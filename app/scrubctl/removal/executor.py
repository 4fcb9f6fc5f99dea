"""Validated removal of filesystem entries.

Every request goes through the ``PathValidator`` first. Accepted paths
are measured, then deleted (live mode) or reported as simulated (dry-run
mode). Both modes run the same validation and sizing code, so a dry-run
projects exactly the totals a live run over the same tree would report.

Filesystem errors are captured per item and never abort a batch.
"""

import logging
import os
import shutil
import stat
import threading
import time
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from scrubctl.removal.models import (
    VERDICT_OUTCOMES,
    BatchResult,
    CleanupOperation,
    FailureKind,
    Outcome,
)
from scrubctl.removal.statistics import SessionStatistics
from scrubctl.safety.errors import GuardedContentError, InvalidPathError, SymlinkBoundaryError
from scrubctl.safety.resolver import resolve_path
from scrubctl.safety.validator import PathValidator

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


@dataclass(frozen=True, slots=True)
class RemovalOptions:
    """Per-request removal options.

    Attributes:
        force: Ignore whitelist rules. Protected paths stay protected.
    """

    force: bool = False


@dataclass(slots=True)
class _PathLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


def _is_within(path: str, root: str) -> bool:
    """Check if ``path`` equals ``root`` or lies below it."""
    return path == root or path.startswith(root.rstrip("/") + "/")


def survey(path: str, guard: Callable[[str], str | None] | None = None) -> int:
    """Measure a path and check its tree for entries that must not go with it.

    Files and symlinks report their own ``lstat`` size. Directories sum
    the sizes of all regular files below them without following links;
    unreadable entries count as zero.

    Args:
        path: Existing path to measure.
        guard: Optional check applied to every entry below a directory,
            returning a rejection reason or None.

    Returns:
        Size in bytes.

    Raises:
        SymlinkBoundaryError: If a symlink inside a directory resolves
            outside that directory.
        GuardedContentError: If ``guard`` rejects an entry.
        OSError: If the path itself cannot be inspected.
    """
    st = os.lstat(path)
    if not stat.S_ISDIR(st.st_mode):
        return st.st_size

    root_real = os.path.realpath(path)
    total = 0
    stack = [path]

    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            logger.debug("Cannot list %s: %s", current, e)
            continue

        for entry in entries:
            if guard is not None:
                reason = guard(entry.path)
                if reason is not None:
                    raise GuardedContentError(entry.path, reason)
            try:
                if entry.is_symlink():
                    target = os.path.realpath(entry.path)
                    if not _is_within(target, root_real):
                        raise SymlinkBoundaryError(entry.path, target)
                elif entry.is_dir(follow_symlinks=False):
                    stack.append(entry.path)
                elif entry.is_file(follow_symlinks=False):
                    total += entry.stat(follow_symlinks=False).st_size
            except OSError as e:
                logger.debug("Cannot measure %s: %s", entry.path, e)
                continue

    return total


def group_overlapping(batches: Mapping[str, Sequence[str]]) -> list[list[str]]:
    """Group batches whose targets overlap.

    Two batches overlap when one names a path that equals or lies below a
    path named by the other. Path locks only serialize identical paths,
    so overlapping batches must run one after another in a single worker.

    Args:
        batches: Batch label to list of paths.

    Returns:
        Groups of batch labels, in input order. Invalid paths are ignored
        here; the validator rejects them later.
    """
    parent = {label: label for label in batches}

    def find(label: str) -> str:
        while parent[label] != label:
            parent[label] = parent[parent[label]]
            label = parent[label]
        return label

    def union(a: str, b: str) -> None:
        parent[find(a)] = find(b)

    owners: dict[str, str] = {}
    for label, paths in batches.items():
        for raw in paths:
            try:
                canonical = resolve_path(raw).canonical
            except InvalidPathError:
                continue
            union(owners.setdefault(canonical, label), label)

    for path, label in owners.items():
        current = path
        while current != "/":
            current = os.path.dirname(current)
            owner = owners.get(current)
            if owner is not None:
                union(owner, label)

    groups: dict[str, list[str]] = {}
    for label in batches:
        groups.setdefault(find(label), []).append(label)
    return list(groups.values())


class RemovalExecutor:
    """Performs (or simulates) validated removals.

    Args:
        validator: Safety gate consulted before every removal.
        statistics: Session statistics updated after removals.
        dry_run: If True, report what would be removed without removing.
        max_workers: Upper bound for the parallel batch worker pool.
        empty_dir_max_passes: Default pass limit for empty-directory removal.
        clock: Time source returning epoch seconds.
    """

    def __init__(
        self,
        validator: PathValidator,
        statistics: SessionStatistics,
        *,
        dry_run: bool = False,
        max_workers: int = 4,
        empty_dir_max_passes: int = 5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._validator = validator
        self._statistics = statistics
        self._dry_run = dry_run
        self._max_workers = max_workers
        self._empty_dir_max_passes = empty_dir_max_passes
        self._clock = clock
        self._cancel = threading.Event()
        self._locks_guard = threading.Lock()
        self._path_locks: dict[str, _PathLock] = {}

    @property
    def dry_run(self) -> bool:
        """Check if executor is in dry-run mode."""
        return self._dry_run

    @property
    def cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Stop starting new items. Items already in progress complete."""
        self._cancel.set()

    def remove_one(
        self,
        path: str,
        description: str | None = None,
        options: RemovalOptions | None = None,
    ) -> CleanupOperation:
        """Remove a single path.

        Args:
            path: Path to remove.
            description: Optional human-readable label.
            options: Removal options.

        Returns:
            CleanupOperation describing the outcome.
        """
        operation = self._remove(path, description, options or RemovalOptions())
        if operation.success:
            self._statistics.record_removal(operation.size_bytes, 1)
        return operation

    def remove_many(
        self,
        paths: Iterable[str],
        description: str | None = None,
        options: RemovalOptions | None = None,
    ) -> BatchResult:
        """Remove a batch of paths, tolerating individual failures.

        Statistics are updated once for the whole batch.

        Args:
            paths: Paths to remove.
            description: Optional label applied to every item.
            options: Removal options.

        Returns:
            BatchResult aggregating every processed item.
        """
        opts = options or RemovalOptions()
        operations: list[CleanupOperation] = []
        cancelled = False

        for path in paths:
            if self._cancel.is_set():
                cancelled = True
                break
            operations.append(self._remove(path, description, opts))

        result = BatchResult.of(operations, cancelled=cancelled)
        self._statistics.record_removal(result.total_bytes, result.removed_count, batch=True)

        if result.failed_count:
            logger.warning(
                "%d of %d removal(s) failed%s",
                result.failed_count,
                len(operations),
                f" ({description})" if description else "",
            )
        return result

    def remove_old_files(
        self,
        directory: str,
        max_age_days: float,
        filter: Callable[[Path], bool] | None = None,
        *,
        description: str | None = None,
    ) -> BatchResult:
        """Remove regular files older than a cutoff below a directory.

        Symlinks are never followed or selected. Files modified within
        the last ``max_age_days`` days are never candidates.

        Args:
            directory: Directory to search.
            max_age_days: Minimum age in days.
            filter: Optional predicate further restricting candidates.
            description: Optional label applied to every item.

        Returns:
            BatchResult for the selected files (empty if the directory is
            invalid, protected or missing).

        Raises:
            ValueError: If max_age_days is negative.
        """
        if max_age_days < 0:
            msg = f"max_age_days cannot be negative, got {max_age_days}"
            raise ValueError(msg)

        root = self._walk_root(directory)
        if root is None:
            return BatchResult()

        cutoff = self._clock() - max_age_days * SECONDS_PER_DAY
        candidates: list[str] = []

        for dirpath, _dirnames, filenames in os.walk(root, followlinks=False):
            for name in filenames:
                candidate = os.path.join(dirpath, name)
                try:
                    st = os.lstat(candidate)
                except OSError:
                    continue
                if not stat.S_ISREG(st.st_mode) or st.st_mtime >= cutoff:
                    continue
                if filter is not None and not filter(Path(candidate)):
                    continue
                candidates.append(candidate)

        candidates.sort()
        logger.debug(
            "%d file(s) older than %s day(s) under %s", len(candidates), max_age_days, root
        )
        return self.remove_many(candidates, description=description)

    def remove_empty_directories(self, root: str, max_passes: int | None = None) -> int:
        """Remove empty directories below ``root``, bottom-up.

        Removing a child can leave its parent empty, so passes repeat
        until one finds nothing or the pass limit is reached. ``root``
        itself is never removed.

        Args:
            root: Directory to clean.
            max_passes: Pass limit. Defaults to the executor setting.

        Returns:
            Number of directories removed (or that would be, in dry-run).

        Raises:
            ValueError: If max_passes is less than 1.
        """
        passes = self._empty_dir_max_passes if max_passes is None else max_passes
        if passes < 1:
            msg = f"max_passes must be at least 1, got {passes}"
            raise ValueError(msg)
        top = self._walk_root(root)
        if top is None:
            return 0

        gone: set[str] = set()
        removed = 0

        for pass_number in range(1, passes + 1):
            found = 0
            for dirpath, _dirnames, _filenames in os.walk(top, topdown=False, followlinks=False):
                if self._cancel.is_set():
                    break
                if dirpath == top or dirpath in gone or not self._is_empty(dirpath, gone):
                    continue
                if self._remove_empty_dir(dirpath).success:
                    gone.add(dirpath)
                    found += 1

            removed += found
            logger.debug("Empty-directory pass %d under %s: %d removed", pass_number, top, found)
            if found == 0 or self._cancel.is_set():
                break

        self._statistics.record_removal(0, removed, batch=True)
        return removed

    def remove_batches(
        self,
        batches: Mapping[str, Sequence[str]],
        options: RemovalOptions | None = None,
    ) -> dict[str, BatchResult]:
        """Run independent batches on a bounded worker pool.

        Batches with overlapping targets (see ``group_overlapping``) share
        one worker and run in order.

        Args:
            batches: Batch label to list of paths.
            options: Removal options for every batch.

        Returns:
            Batch label to BatchResult, in input order.
        """
        if not batches:
            return {}

        groups = group_overlapping(batches)
        workers = max(1, min(os.cpu_count() or 1, self._max_workers, len(groups)))
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scrubctl")
        try:
            futures = [
                pool.submit(self._run_group, {label: batches[label] for label in group}, options)
                for group in groups
            ]
            results: dict[str, BatchResult] = {}
            for future in futures:
                results.update(future.result())
            return {label: results[label] for label in batches}
        except KeyboardInterrupt:
            self.cancel()
            raise
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

    # === Private helpers ===

    def _run_group(
        self,
        batches: Mapping[str, Sequence[str]],
        options: RemovalOptions | None,
    ) -> dict[str, BatchResult]:
        return {label: self.remove_many(paths, label, options) for label, paths in batches.items()}

    def _remove(
        self,
        path: str,
        description: str | None,
        options: RemovalOptions,
    ) -> CleanupOperation:
        validation = self._validator.validate(path, honour_whitelist=not options.force)
        resolved = validation.resolved
        if not validation.is_safe or resolved is None:
            logger.debug("Skipping %s: %s", path, validation.reason)
            return CleanupOperation(
                raw_path=path,
                resolved_path=validation.canonical,
                outcome=VERDICT_OUTCOMES[validation.verdict],
                description=description,
                error=validation.reason,
            )

        target = resolved.canonical
        with self._path_lock(target):
            if not os.path.lexists(target):
                return CleanupOperation(
                    raw_path=path,
                    resolved_path=target,
                    outcome=Outcome.SKIPPED_MISSING,
                    description=description,
                    error=f"Path does not exist: {target}",
                )

            guard = None
            if os.path.isdir(target) and not os.path.islink(target):
                guard = self._validator.tree_guard(resolved, honour_whitelist=not options.force)

            try:
                size = survey(target, guard)
            except SymlinkBoundaryError as e:
                logger.warning("Refusing to remove %s: %s", target, e)
                return self._failed(path, target, description, FailureKind.SYMLINK_BOUNDARY, str(e))
            except GuardedContentError as e:
                logger.warning("Refusing to remove %s: %s", target, e)
                return self._failed(path, target, description, FailureKind.GUARDED_CONTENT, str(e))
            except OSError as e:
                return self._failed(path, target, description, FailureKind.FILESYSTEM, str(e))

            if self._dry_run:
                logger.info("Dry-run: would remove %s (%d bytes)", target, size)
                return CleanupOperation(
                    raw_path=path,
                    resolved_path=target,
                    outcome=Outcome.SIMULATED,
                    size_bytes=size,
                    description=description,
                )

            try:
                self._delete(target)
            except OSError as e:
                logger.warning("Failed to remove %s: %s", target, e)
                return self._failed(path, target, description, FailureKind.FILESYSTEM, str(e))

        logger.info("Removed %s (%d bytes)", target, size)
        return CleanupOperation(
            raw_path=path,
            resolved_path=target,
            outcome=Outcome.REMOVED,
            size_bytes=size,
            description=description,
        )

    def _remove_empty_dir(self, path: str) -> CleanupOperation:
        validation = self._validator.validate(path)
        if not validation.is_safe:
            return CleanupOperation(
                raw_path=path,
                resolved_path=validation.canonical,
                outcome=VERDICT_OUTCOMES[validation.verdict],
                error=validation.reason,
            )

        if self._dry_run:
            return CleanupOperation(raw_path=path, resolved_path=path, outcome=Outcome.SIMULATED)

        with self._path_lock(path):
            try:
                # rmdir refuses non-empty directories, so a racing writer wins
                os.rmdir(path)
            except OSError as e:
                return self._failed(path, path, None, FailureKind.FILESYSTEM, str(e))

        return CleanupOperation(raw_path=path, resolved_path=path, outcome=Outcome.REMOVED)

    def _walk_root(self, directory: str) -> str | None:
        """Validate a directory to walk and return its canonical form.

        Whitelisted directories are still walked; their entries are
        validated one by one.
        """
        validation = self._validator.validate(directory, honour_whitelist=False, recursive=False)
        root = validation.canonical
        if not validation.is_safe or root is None:
            logger.warning("Refusing to scan %s: %s", directory, validation.reason)
            return None

        if os.path.islink(root) or not os.path.isdir(root):
            logger.debug("Not a directory, nothing to scan: %s", root)
            return None
        return root

    @staticmethod
    def _is_empty(path: str, gone: set[str]) -> bool:
        """Check if a directory has no entries other than removed ones."""
        try:
            with os.scandir(path) as it:
                return all(entry.path in gone for entry in it)
        except OSError:
            return False

    @staticmethod
    def _delete(path: str) -> None:
        st = os.lstat(path)
        if stat.S_ISDIR(st.st_mode):
            shutil.rmtree(path)
        else:
            os.unlink(path)

    @staticmethod
    def _failed(
        raw: str,
        target: str,
        description: str | None,
        kind: FailureKind,
        error: str,
    ) -> CleanupOperation:
        return CleanupOperation(
            raw_path=raw,
            resolved_path=target,
            outcome=Outcome.FAILED,
            description=description,
            failure=kind,
            error=error,
        )

    @contextmanager
    def _path_lock(self, key: str) -> Iterator[None]:
        """Serialize operations on the same target path.

        Entries live only while someone holds or waits for them.
        """
        with self._locks_guard:
            entry = self._path_locks.get(key)
            if entry is None:
                entry = self._path_locks[key] = _PathLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._path_locks[key]
