"""
Media reconciliation service.

Walks the catalog media directory once and compares every file against the
paths recorded in the media gallery table:

- cached files (under the cache subtree) are counted but never compared
- files referenced by the gallery are used
- files nobody references are unused and can be listed, removed or moved
  into the quarantine folder
- gallery paths with no file on disk are missing, and their rows can be
  pruned from the store

Usage:
    reconciler = MediaReconciler("/var/www/pub/media", options, store=store)
    summary = reconciler.run(load_reference_set(store))
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Set

import pytz

from .media_gallery import MediaGalleryStore, StoreError

logger = logging.getLogger(__name__)

CACHE_PREFIX = "/cache"
UNUSED_FOLDER = "unused"
CATALOG_MEDIA_DIR = "catalog/product"


class MediaDirectoryError(RuntimeError):
    """Error raised when the media directory to reconcile is not usable."""


class ConflictingActionsError(ValueError):
    """Error raised when unused files are asked to be both removed and moved."""


@dataclass(frozen=True)
class ReconcileOptions:
    """Actions applied to the discrepancies found during a run."""

    remove_unused: bool = False
    remove_orphaned_rows: bool = False
    list_missing: bool = False
    list_unused: bool = False
    move_unused: bool = False

    def __post_init__(self):
        if self.remove_unused and self.move_unused:
            raise ConflictingActionsError(
                "Unused files can either be removed or moved, not both"
            )


@dataclass
class FileActionError:
    """A per-file action (or directory read) that failed during the walk."""

    path: str
    action: str
    message: str


@dataclass
class RunSummary:
    """Counts and path lists produced by one reconciliation run."""

    reference_count: int = 0
    cached_files: int = 0
    used_files: int = 0
    unused_files: int = 0
    unused_paths: List[str] = field(default_factory=list)
    moved_paths: List[str] = field(default_factory=list)
    missing_paths: List[str] = field(default_factory=list)
    errors: List[FileActionError] = field(default_factory=list)
    walk_errors: List[FileActionError] = field(default_factory=list)
    orphaned_rows_removed: int = 0
    prune_error: Optional[str] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(pytz.UTC))
    finished_at: Optional[datetime] = None

    @property
    def files_found(self) -> int:
        return self.cached_files + self.used_files + self.unused_files

    @property
    def missing_files(self) -> int:
        return len(self.missing_paths)

    @property
    def duration_seconds(self) -> float:
        end_time = self.finished_at or datetime.now(pytz.UTC)
        return (end_time - self.started_at).total_seconds()

    def summary_lines(self) -> List[str]:
        """Return the fixed summary report, one line per count."""
        return [
            f"Media Gallery entries: {self.reference_count}.",
            f"Files in directory: {self.files_found}.",
            f"Cached images: {self.cached_files}.",
            f"Unused files: {self.unused_files}.",
            f"Missing files: {self.missing_files}.",
        ]


class MediaReconciler:
    """Reconciles a media directory tree against the gallery reference set."""

    def __init__(
        self,
        media_root: str,
        options: Optional[ReconcileOptions] = None,
        store: Optional[MediaGalleryStore] = None,
        catalog_dir: str = CATALOG_MEDIA_DIR,
        cache_prefix: str = CACHE_PREFIX,
        unused_folder: str = UNUSED_FOLDER,
        echo: Callable[[str], None] = print,
    ):
        """
        Initialize the reconciler.

        Args:
            media_root: Media root directory; the quarantine folder lives here
            options: Actions to apply, defaults to report only
            store: Gallery store, required to prune orphaned rows
            catalog_dir: Subtree of the media root that is walked ("" for the root itself)
            cache_prefix: Relative path of the cache subtree
            unused_folder: Name of the quarantine folder under the media root
            echo: Callable receiving each report line

        Raises:
            MediaDirectoryError: If the directory to walk does not exist
            ValueError: If orphaned rows should be pruned but no store was given
        """
        self.options = options or ReconcileOptions()
        if self.options.remove_orphaned_rows and store is None:
            raise ValueError("A media gallery store is required to remove orphaned rows")

        self.store = store
        self.media_root = os.path.abspath(media_root)
        self.scan_root = os.path.normpath(os.path.join(self.media_root, catalog_dir))
        self.quarantine_root = os.path.join(self.media_root, unused_folder)
        self.cache_prefix = "/" + cache_prefix.strip("/")
        self.echo = echo

        if not os.path.isdir(self.scan_root):
            raise MediaDirectoryError(f"Media directory not found: {self.scan_root}")

    def relative_path(self, path: str) -> str:
        """Convert an absolute path under the walked directory to a gallery-style path."""
        relative = os.path.relpath(path, self.scan_root).replace(os.sep, "/")
        return "/" + relative

    def is_cached(self, relative_path: str) -> bool:
        """
        Whether a path lies inside the cache subtree.

        The prefix names a directory, so "/cache/1/a.jpg" is cached while
        "/cached.jpg" or "/cache_old/a.jpg" are classified like any other file.
        """
        return (
            relative_path == self.cache_prefix
            or relative_path.startswith(self.cache_prefix + "/")
        )

    def quarantine_path(self, path: str) -> str:
        """Destination of an unused file, mirroring its place under the media root."""
        return os.path.join(self.quarantine_root, os.path.relpath(path, self.media_root))

    def run(self, reference_paths: Set[str]) -> RunSummary:
        """
        Walk the media directory and apply the configured actions.

        Args:
            reference_paths: Media paths expected to exist, relative to the
                walked directory (e.g. "/a/b/ab.jpg")

        Returns:
            RunSummary for this run
        """
        options = self.options
        summary = RunSummary(reference_count=len(reference_paths))
        # Whatever is left after the walk is exactly the missing set
        remaining = set(reference_paths)

        logger.info(f"🔍 Scanning {self.scan_root} against {len(reference_paths)} gallery paths")

        if options.list_unused:
            self.echo("Unused files:")
        if options.move_unused:
            self.echo(f'Moved to the "{self.quarantine_root}" folder')

        for path in self._walk_files(summary):
            relative_path = self.relative_path(path)
            remaining.discard(relative_path)

            if self.is_cached(relative_path):
                summary.cached_files += 1
                continue

            if relative_path in reference_paths:
                summary.used_files += 1
                continue

            summary.unused_files += 1
            summary.unused_paths.append(relative_path)
            if options.list_unused:
                self.echo(relative_path)
            if options.remove_unused:
                self._remove_file(path, summary)
            elif options.move_unused:
                self._move_file(path, summary)

        if options.remove_unused:
            self.echo("Unused files were removed!")

        summary.missing_paths = sorted(remaining)
        if options.list_missing:
            self.echo("Missing media files:")
            for missing_path in summary.missing_paths:
                self.echo(missing_path)

        if options.remove_orphaned_rows and summary.missing_paths:
            self._remove_orphaned_rows(summary)

        summary.finished_at = datetime.now(pytz.UTC)
        logger.info(
            f"✅ Reconciliation finished in {summary.duration_seconds:.1f}s: "
            f"{summary.files_found} files, {summary.unused_files} unused, "
            f"{summary.missing_files} missing"
        )
        return summary

    def _walk_files(self, summary: RunSummary) -> Iterator[str]:
        """
        Yield every regular file below the walked directory, in sorted order.

        Symbolic links are followed, so a directory reachable through several
        links is walked once per path. Only a link back to one of its own
        ancestors (a cycle) is not entered. The quarantine folder is skipped
        when it lies inside the walked tree.
        """
        # dirpath -> real paths of that directory and all of its ancestors
        branches = {}

        def on_error(exc: OSError):
            path = exc.filename or self.scan_root
            logger.warning(f"⚠️  Skipping unreadable directory {path}: {exc.strerror or exc}")
            summary.walk_errors.append(FileActionError(path, "walk", str(exc)))

        for dirpath, dirnames, filenames in os.walk(self.scan_root, onerror=on_error, followlinks=True):
            real_path = os.path.realpath(dirpath)
            ancestors = branches.get(os.path.dirname(dirpath), frozenset())
            if real_path in ancestors:
                logger.debug(f"Symlink cycle at {dirpath}, not following again")
                dirnames[:] = []
                continue
            branches[dirpath] = ancestors | {real_path}

            dirnames[:] = sorted(
                name for name in dirnames
                if os.path.join(dirpath, name) != self.quarantine_root
            )

            for name in sorted(filenames):
                path = os.path.join(dirpath, name)
                if os.path.isfile(path):
                    yield path
                else:
                    logger.debug(f"Not a regular file, ignored: {path}")

    def _remove_file(self, path: str, summary: RunSummary):
        try:
            os.remove(path)
            logger.debug(f"Removed unused file {path}")
        except OSError as exc:
            logger.error(f"❌ Failed to remove {path}: {exc}")
            summary.errors.append(FileActionError(path, "remove", str(exc)))

    def _move_file(self, path: str, summary: RunSummary):
        destination = self.quarantine_path(path)
        try:
            os.makedirs(os.path.dirname(destination), exist_ok=True)
            shutil.move(path, destination)
        except OSError as exc:
            logger.error(f"❌ Failed to move {path} to {destination}: {exc}")
            summary.errors.append(FileActionError(path, "move", str(exc)))
            return
        summary.moved_paths.append(destination)
        self.echo(destination)

    def _remove_orphaned_rows(self, summary: RunSummary):
        try:
            summary.orphaned_rows_removed = self.store.delete_values(summary.missing_paths)
        except StoreError as exc:
            # Single batch, so nothing was deleted
            logger.error(f"❌ Failed to remove orphaned gallery rows: {exc}")
            summary.prune_error = str(exc)
