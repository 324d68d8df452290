"""Depth-first enumeration of working copy subtrees."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .models import EntryKind, FileSystemEntry

logger = logging.getLogger(__name__)

# Version-control metadata directories are never part of the namespace
METADATA_DIRS = frozenset({".svn"})


def relative_key(path: Path, repo_root: Path) -> str:
    """Return *path* relative to *repo_root* as a POSIX string."""
    return path.relative_to(repo_root).as_posix()


def walk_tree(root: Path, repo_root: Path) -> list[FileSystemEntry]:
    """List *root* and everything below it, pre-order.

    Uses an explicit stack rather than recursion so very deep trees do
    not exhaust the interpreter stack.  A directory is always listed
    before its children; siblings are visited in sorted name order.
    Symlinks are listed as files and never followed.

    Args:
        root: Subtree to walk.  A missing root yields an empty list.
        repo_root: Working copy root used to compute relative paths.

    Returns:
        Entries in pre-order.
    """
    if not root.exists() and not root.is_symlink():
        return []

    entries: list[FileSystemEntry] = []
    stack: list[Path] = [root]

    while stack:
        current = stack.pop()
        is_dir = current.is_dir() and not current.is_symlink()
        entries.append(
            FileSystemEntry(
                absolute_path=str(current),
                relative_path=relative_key(current, repo_root),
                kind=EntryKind.DIRECTORY if is_dir else EntryKind.FILE,
            )
        )

        if not is_dir:
            continue

        children = sorted(
            name for name in os.listdir(current) if name not in METADATA_DIRS
        )
        # Reversed so the first child is popped first
        for name in reversed(children):
            stack.append(current / name)

    logger.debug("Walked %s: %d entries", root, len(entries))
    return entries
