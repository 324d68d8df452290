"""Subversion client functionality shared between the CLI and the sync engine."""

from .client import SvnClient
from .models import RepoInfo, StatusEntry

__all__ = ["RepoInfo", "StatusEntry", "SvnClient"]
