"""Configuration schema for svn-mirror.

Defines Pydantic models for the JSON-shaped configuration consumed by the
reconciler.  Keys use camelCase names (``repoA``,
``localPath``, ``logFile``); snake_case names are accepted as well.

Usage:
    from svn_mirror.config_schema import build_config

    raw = load_hierarchical_config()
    config = build_config(raw)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class RepoDescriptor(BaseModel):
    """One Subversion working copy and its optional credentials."""

    url: str = Field(default="", description="Repository URL")
    username: str | None = Field(default=None, description="svn username")
    password: str | None = Field(default=None, description="svn password")
    local_path: str = Field(
        default="",
        alias="localPath",
        description="Working copy root on local disk",
    )

    model_config = {"frozen": True, "populate_by_name": True}


class LoggingConfig(BaseModel):
    """Diagnostic logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional diagnostic log file path (not the audit log).
    """

    level: str = Field(default="WARNING", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


class SyncConfig(BaseModel):
    """Static description of the two working copies and the audit log.

    Immutable for the lifetime of a run.
    """

    repo_a: RepoDescriptor = Field(
        default_factory=RepoDescriptor, alias="repoA"
    )
    repo_b: RepoDescriptor = Field(
        default_factory=RepoDescriptor, alias="repoB"
    )
    log_file: str = Field(
        default="sync.log",
        alias="logFile",
        description="Append-only audit log path",
    )
    svn_binary: str = Field(
        default="svn",
        alias="svnBinary",
        description="svn executable name or path",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds allowed per svn call; null means no timeout",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True, "populate_by_name": True}


# ---------------------------------------------------------------------------
# Defaults and factory
# ---------------------------------------------------------------------------

DEFAULT_CONFIG: dict[str, Any] = {
    "repoA": {"url": "", "localPath": ""},
    "repoB": {"url": "", "localPath": ""},
    "logFile": "sync.log",
}


def merge_defaults(raw_data: dict[str, Any]) -> dict[str, Any]:
    """Merge *raw_data* over ``DEFAULT_CONFIG``.

    Top-level keys from *raw_data* replace the defaults (shallow merge).
    """
    merged = dict(DEFAULT_CONFIG)
    merged.update(raw_data or {})
    return merged


def build_config(raw_data: dict[str, Any] | None) -> SyncConfig:
    """Construct a ``SyncConfig`` from the merged raw configuration dict.

    Handles missing sections gracefully -- anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``SyncConfig`` instance.
    """
    return SyncConfig(**merge_defaults(raw_data or {}))
