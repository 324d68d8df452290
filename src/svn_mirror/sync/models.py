"""Pydantic models for the reconciliation engine.

- ``EntryKind``: file or directory.
- ``FileSystemEntry``: one node of a walked working copy tree.
- ``SyncAction``: mutation issued against the mirror working copy.
- ``SyncOperation``: one add/delete, in the order it was issued.
- ``SyncReport``: aggregate result of a successful run.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class FileSystemEntry(BaseModel):
    """A file or directory found while walking a working copy.

    Attributes:
        absolute_path: Absolute path on disk.
        relative_path: POSIX path relative to the entry's own repo root.
            This is the identity key when comparing the two trees.
        kind: File or directory.
    """

    absolute_path: str
    relative_path: str
    kind: EntryKind

    model_config = {"frozen": True}

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY


class SyncAction(str, Enum):
    ADD = "add"
    DELETE = "delete"


class SyncOperation(BaseModel):
    """One add or delete applied (or planned) against the mirror."""

    action: SyncAction
    kind: EntryKind
    relative_path: str

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Result of one reconciliation run.

    Attributes:
        paths: Requested relative paths, in processing order.
        dry_run: Whether mutations were only planned.
        operations: Adds and deletes in the order they were issued.
        log: Timestamped log lines written to the audit log.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    paths: list[str]
    dry_run: bool = False
    operations: list[SyncOperation] = []
    log: list[str] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def added(self) -> list[SyncOperation]:
        return [op for op in self.operations if op.action == SyncAction.ADD]

    @property
    def deleted(self) -> list[SyncOperation]:
        return [
            op for op in self.operations if op.action == SyncAction.DELETE
        ]
