"""Reconciliation engine that mirrors working copy A into working copy B.

The ``Reconciler`` makes B's namespace match A's for a list of requested
sub-paths.  A run:

1. Reverts both working copies so only committed state is compared.
2. Updates both working copies from their remotes.
3. For each requested path, in the order given:
   a. walks the subtree in A and in B (pre-order),
   b. adds every entry missing from B (directories created, new files
      copied from A),
   c. deletes every entry of B that is missing from A.
4. Commits B.
5. Appends the run's log to the audit log file, once.

Only presence is reconciled; files that exist on both sides are left
untouched.  Any failure stops the run and is raised as ``SyncError``.
Operations already issued are **not** rolled back.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from svn_mirror.config_schema import RepoDescriptor, SyncConfig
from svn_mirror.core.client import SvnClient
from svn_mirror.errors import PathNotFoundError, SyncError
from svn_mirror.sync.log import SyncLog, timestamp
from svn_mirror.sync.models import (
    EntryKind,
    FileSystemEntry,
    SyncAction,
    SyncOperation,
    SyncReport,
)
from svn_mirror.sync.walker import walk_tree

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "Sync from repository A"


def client_for(repo: RepoDescriptor, config: SyncConfig) -> SvnClient:
    """Build an ``SvnClient`` bound to *repo*'s working copy."""
    return SvnClient(
        cwd=repo.local_path,
        username=repo.username,
        password=repo.password,
        executable=config.svn_binary,
        timeout=config.timeout,
    )


class Reconciler:
    """Mirror the namespace of working copy A into working copy B.

    Args:
        config: The sync configuration.
        client_a: Client for working copy A (built from *config* if omitted).
        client_b: Client for working copy B (built from *config* if omitted).
    """

    def __init__(
        self,
        config: SyncConfig,
        client_a: SvnClient | None = None,
        client_b: SvnClient | None = None,
    ) -> None:
        self.config = config
        self.source_root = Path(config.repo_a.local_path).resolve()
        self.target_root = Path(config.repo_b.local_path).resolve()
        self.client_a = client_a or client_for(config.repo_a, config)
        self.client_b = client_b or client_for(config.repo_b, config)

    # ------------------------------------------------------------------
    # Main entry points
    # ------------------------------------------------------------------

    def sync(self, paths: Iterable[str]) -> list[str]:
        """Reconcile *paths* and return the log lines of the run.

        Raises:
            SyncError: On any failure; the partial log is persisted first.
        """
        return self.run(paths).log

    def run(self, paths: Iterable[str], dry_run: bool = False) -> SyncReport:
        """Execute a full reconciliation run.

        Args:
            paths: Relative paths to reconcile, processed in order.
            dry_run: If ``True``, compute and log adds/deletes without
                applying them and skip the commit.

        Returns:
            A ``SyncReport`` with the issued operations and the log.

        Raises:
            SyncError: On any failure.
        """
        requested = list(paths)
        started_at = timestamp()
        log = SyncLog()

        try:
            operations = self._reconcile(requested, log, dry_run)
        except Exception as exc:
            error = SyncError.wrap(exc)
            log.error(f"Sync failed: {error.message}")
            self._persist_after_failure(log)
            raise error from exc

        self._persist(log)

        return SyncReport(
            paths=requested,
            dry_run=dry_run,
            operations=operations,
            log=log.lines,
            started_at=started_at,
            completed_at=timestamp(),
        )

    # ------------------------------------------------------------------
    # Algorithm
    # ------------------------------------------------------------------

    def _reconcile(
        self, paths: list[str], log: SyncLog, dry_run: bool
    ) -> list[SyncOperation]:
        log.info("Starting sync (dry run)" if dry_run else "Starting sync")

        # Discard local edits so the diff reflects committed state only
        log.info("Reverting repository A")
        self.client_a.revert(".", recursive=True)
        log.info("Reverting repository B")
        self.client_b.revert(".", recursive=True)

        log.info("Updating repository A")
        self.client_a.update(".")
        log.info("Updating repository B")
        self.client_b.update(".")

        operations: list[SyncOperation] = []
        for rel_path in paths:
            operations.extend(self._sync_path(rel_path, log, dry_run))

        if dry_run:
            log.info(
                f"Dry run complete: {len(operations)} operation(s) planned"
            )
            return operations

        log.info("Committing changes to repository B")
        self.client_b.commit(".", COMMIT_MESSAGE)

        log.info("Sync complete")
        return operations

    def _sync_path(
        self, rel_path: str, log: SyncLog, dry_run: bool
    ) -> list[SyncOperation]:
        """Reconcile one requested sub-path."""
        source = self._resolve(self.source_root, rel_path)
        if not source.exists() and not source.is_symlink():
            raise PathNotFoundError(str(source))
        target = self._resolve(self.target_root, rel_path)

        source_entries = walk_tree(source, self.source_root)
        target_entries = walk_tree(target, self.target_root)

        operations: list[SyncOperation] = []
        for entry in source_entries:
            op = self._add_missing(entry, log, dry_run)
            if op is not None:
                operations.append(op)

        source_keys = {entry.relative_path for entry in source_entries}
        operations.extend(
            self._delete_extra(target_entries, source_keys, log, dry_run)
        )
        return operations

    def _add_missing(
        self, entry: FileSystemEntry, log: SyncLog, dry_run: bool
    ) -> SyncOperation | None:
        """Add *entry* to B if nothing exists at its relative path there."""
        dest = self.target_root / entry.relative_path
        if dest.exists() or dest.is_symlink():
            return None

        if entry.is_dir:
            log.info(f"Adding directory: {entry.relative_path}")
            if not dry_run:
                dest.mkdir(parents=True, exist_ok=True)
                self.client_b.add(dest, parents=True)
        else:
            log.info(f"Adding file: {entry.relative_path}")
            if not dry_run:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(
                    entry.absolute_path, dest, follow_symlinks=False
                )
                self.client_b.add(dest, parents=True)

        return SyncOperation(
            action=SyncAction.ADD,
            kind=entry.kind,
            relative_path=entry.relative_path,
        )

    def _delete_extra(
        self,
        target_entries: list[FileSystemEntry],
        source_keys: set[str],
        log: SyncLog,
        dry_run: bool,
    ) -> list[SyncOperation]:
        """Delete entries of B whose relative path was not seen in A.

        Deleting a directory removes its whole subtree, so descendants of
        a deleted directory are skipped.
        """
        operations: list[SyncOperation] = []
        deleted_dirs: list[str] = []

        for entry in target_entries:
            if entry.relative_path in source_keys:
                continue
            if any(
                entry.relative_path.startswith(d + "/") for d in deleted_dirs
            ):
                logger.debug(
                    "Skipping %s: parent directory already deleted",
                    entry.relative_path,
                )
                continue

            log.info(f"Deleting extra entry: {entry.relative_path}")
            if not dry_run:
                self.client_b.delete(entry.absolute_path)

            operations.append(
                SyncOperation(
                    action=SyncAction.DELETE,
                    kind=entry.kind,
                    relative_path=entry.relative_path,
                )
            )
            if entry.kind == EntryKind.DIRECTORY:
                deleted_dirs.append(entry.relative_path)

        return operations

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve(repo_root: Path, rel_path: str) -> Path:
        """Join *rel_path* onto *repo_root*, refusing to leave the root."""
        candidate = Path(os.path.normpath(repo_root / rel_path))
        if candidate != repo_root and not candidate.is_relative_to(repo_root):
            raise PathNotFoundError(
                f"{rel_path} (outside working copy {repo_root})"
            )
        return candidate

    def _persist(self, log: SyncLog) -> None:
        """Append *log* to the audit log file."""
        try:
            log.append_to(self.config.log_file)
        except OSError as exc:
            raise SyncError(
                f"Failed to write sync log {self.config.log_file}: {exc}"
            ) from exc

    def _persist_after_failure(self, log: SyncLog) -> None:
        """Append *log* after a failed run; a write error is only logged."""
        try:
            log.append_to(self.config.log_file)
        except OSError:
            logger.exception(
                "Failed to write sync log %s", self.config.log_file
            )
