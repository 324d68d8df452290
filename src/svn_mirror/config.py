"""Resolve the ``SyncConfig`` for one invocation.

Reads working copy settings from config files, environment variables and
CLI overrides.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > config files > Built-in defaults

Environment variables:
    SVN_MIRROR_A_USERNAME / SVN_MIRROR_A_PASSWORD: credentials for repo A
    SVN_MIRROR_B_USERNAME / SVN_MIRROR_B_PASSWORD: credentials for repo B
    SVN_MIRROR_LOG_FILE: audit log path
    SVN_MIRROR_SVN_BINARY: svn executable
"""

import logging
import os
from pathlib import Path
from typing import Any

from .config_loader import load_hierarchical_config
from .config_schema import SyncConfig, build_config

logger = logging.getLogger(__name__)

_REPO_ENV_KEYS = {
    "repoA": ("SVN_MIRROR_A_USERNAME", "SVN_MIRROR_A_PASSWORD"),
    "repoB": ("SVN_MIRROR_B_USERNAME", "SVN_MIRROR_B_PASSWORD"),
}


def validate_config(config: SyncConfig) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: SyncConfig instance to validate.

    Raises:
        ValueError: If a working copy path or the log file path is empty,
            or both repos point at the same working copy.
    """
    for label, repo in (("repoA", config.repo_a), ("repoB", config.repo_b)):
        if not repo.local_path.strip():
            raise ValueError(
                f"{label}.localPath is not set. "
                "Add it to config.json or .svn_mirror/config.yml."
            )

    if not config.log_file.strip():
        raise ValueError("logFile cannot be empty")

    if Path(config.repo_a.local_path).resolve() == Path(
        config.repo_b.local_path
    ).resolve():
        raise ValueError(
            "repoA.localPath and repoB.localPath refer to the same directory"
        )


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Overlay credential and path settings from environment variables."""
    result = dict(raw)

    for section, (user_key, pass_key) in _REPO_ENV_KEYS.items():
        repo = dict(result.get(section) or {})
        username = os.getenv(user_key)
        password = os.getenv(pass_key)
        if username:
            repo["username"] = username
        if password:
            repo["password"] = password
        if repo:
            result[section] = repo

    log_file = os.getenv("SVN_MIRROR_LOG_FILE")
    if log_file:
        result["logFile"] = log_file

    svn_binary = os.getenv("SVN_MIRROR_SVN_BINARY")
    if svn_binary:
        result["svnBinary"] = svn_binary

    return result


def load_config(
    config_path: str | Path | None = None,
    log_file: str | None = None,
    svn_binary: str | None = None,
) -> SyncConfig:
    """Load configuration with unified precedence.

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        config_path: Explicit config file (highest-precedence file).
        log_file: Override audit log path.
        svn_binary: Override svn executable.

    Returns:
        Validated, immutable SyncConfig.

    Raises:
        ValueError: If required settings are missing or invalid.
        FileNotFoundError: If *config_path* does not exist.
    """
    raw = load_hierarchical_config(config_path)
    raw = _apply_env_overrides(raw)

    if log_file:
        raw["logFile"] = log_file
    if svn_binary:
        raw["svnBinary"] = svn_binary

    config = build_config(raw)
    validate_config(config)

    logger.debug(
        "Loaded config: A=%s B=%s log=%s",
        config.repo_a.local_path,
        config.repo_b.local_path,
        config.log_file,
    )
    return config
