"""Working copy reconciliation engine.

Public API for mirroring the namespace of one Subversion working copy
into another.

Modules:

- ``engine``   -- ``Reconciler``: runs revert, update, diff, apply, commit.
- ``walker``   -- ``walk_tree``: iterative pre-order tree enumeration.
- ``log``      -- ``SyncLog``: per-run audit log accumulator.
- ``models``   -- ``FileSystemEntry``, ``SyncOperation``, ``SyncReport``.
- ``reporter`` -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from svn_mirror.config import load_config
    from svn_mirror.sync import Reconciler, format_sync_report

    reconciler = Reconciler(load_config())

    preview = reconciler.run(["docs"], dry_run=True)
    print(format_sync_report(preview))

    for line in reconciler.sync(["docs"]):
        print(line)
"""

from .engine import COMMIT_MESSAGE, Reconciler
from .log import SyncLog
from .models import (
    EntryKind,
    FileSystemEntry,
    SyncAction,
    SyncOperation,
    SyncReport,
)
from .reporter import format_sync_report, report_to_json
from .walker import walk_tree

__all__ = [
    "COMMIT_MESSAGE",
    "EntryKind",
    "FileSystemEntry",
    "Reconciler",
    "SyncAction",
    "SyncLog",
    "SyncOperation",
    "SyncReport",
    "format_sync_report",
    "report_to_json",
    "walk_tree",
]
