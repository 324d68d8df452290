"""Shared pytest fixtures for svn-mirror tests."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

from svn_mirror.config_schema import SyncConfig

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a real svn executable",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a real svn executable"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        # --run-live given: do not skip live tests
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def working_copies(tmp_path: Path) -> tuple[Path, Path]:
    """Two empty working copy roots, each with a ``.svn`` metadata dir."""
    wc_a = tmp_path / "wc-a"
    wc_b = tmp_path / "wc-b"
    for wc in (wc_a, wc_b):
        (wc / ".svn").mkdir(parents=True)
        (wc / ".svn" / "wc.db").write_text("", encoding="utf-8")
    return wc_a, wc_b


@pytest.fixture
def sync_config(tmp_path: Path, working_copies) -> SyncConfig:
    """SyncConfig pointing at the ``working_copies`` fixture."""
    wc_a, wc_b = working_copies
    return SyncConfig(
        repoA={"url": "https://svn.a.example/repo", "localPath": str(wc_a)},
        repoB={
            "url": "https://svn.b.example/repo",
            "localPath": str(wc_b),
            "username": "mirror",
            "password": "secret",
        },
        logFile=str(tmp_path / "logs" / "sync.log"),
    )
