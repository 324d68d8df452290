"""Parsed snapshots of Subversion metadata.

Produced by ``SvnClient.status()`` and ``SvnClient.info()``; read-only and
never persisted.
"""

from __future__ import annotations

from pydantic import BaseModel


class StatusEntry(BaseModel):
    """One line of ``svn status -v`` output.

    Attributes:
        path: Path as printed by svn.
        status_code: First status column (``M``, ``A``, ``?``, `` `` ...).
        working_revision: Working revision, ``None`` for unversioned items.
    """

    path: str
    status_code: str
    working_revision: str | None = None

    model_config = {"frozen": True}


class RepoInfo(BaseModel):
    """Fields of interest from ``svn info`` output.

    Every field is optional; keys missing from the output stay ``None``.
    """

    url: str | None = None
    revision: str | None = None
    last_changed_author: str | None = None
    last_changed_rev: str | None = None
    last_changed_date: str | None = None

    model_config = {"frozen": True}
