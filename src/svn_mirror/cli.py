"""Command-line entry point for svn-mirror.

Commands:
    sync PATH...        Mirror PATHs from working copy A into B and commit.
    checkout [a|b|both] Check out the configured URLs into their local paths.
    status a|b [PATH]   Show ``svn status -v`` for one working copy.
    info a|b [PATH]     Show ``svn info`` for one working copy.
    cleanup a|b         Run ``svn cleanup`` on one working copy.

Exit status: 0 on success, 1 when a command fails, 2 on configuration errors.
"""

import argparse
import json
import logging
import sys

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import load_config
from .config_schema import RepoDescriptor, SyncConfig
from .core.client import SvnClient
from .errors import MirrorError, SyncError
from .logger import setup_logging
from .sync.engine import Reconciler, client_for
from .sync.log import AUDIT_LOGGER
from .sync.reporter import format_sync_report, report_to_json

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="svn-mirror",
        description="Mirror a Subversion working copy into an independently tracked one",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mirror two directories using ./config.json
  svn-mirror sync docs src/app

  # Preview without touching repository B
  svn-mirror sync docs --dry-run

  # Use an explicit config file and JSON output
  svn-mirror --config /etc/svn-mirror/config.yml sync docs --json

Credentials can be supplied via SVN_MIRROR_A_USERNAME, SVN_MIRROR_A_PASSWORD,
SVN_MIRROR_B_USERNAME and SVN_MIRROR_B_PASSWORD instead of the config file.
        """,
    )
    parser.add_argument(
        "--config",
        help="Config file (takes precedence over SVN_MIRROR_CONFIG and discovered files)",
    )
    parser.add_argument(
        "--audit-log",
        help="Override the audit log path (logFile in the config)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--debug-format",
        choices=["text", "json"],
        default="text",
        help="Diagnostic log format (default: text)",
    )
    parser.add_argument(
        "--log-file",
        help="Also write diagnostic logging to this file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"svn-mirror version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sync_p = sub.add_parser("sync", help="Mirror paths from A into B")
    sync_p.add_argument(
        "paths", nargs="+", help="Paths relative to the working copy roots"
    )
    sync_p.add_argument(
        "--dry-run",
        action="store_true",
        help="Show planned adds/deletes without changing repository B",
    )
    sync_p.add_argument(
        "--json", action="store_true", help="Print a JSON report"
    )

    checkout_p = sub.add_parser(
        "checkout", help="Check out configured URLs into local paths"
    )
    checkout_p.add_argument(
        "repo", nargs="?", choices=["a", "b", "both"], default="both"
    )

    for name, help_text in (
        ("status", "Show svn status for a working copy"),
        ("info", "Show svn info for a working copy"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("repo", choices=["a", "b"])
        p.add_argument("path", nargs="?", default=".")

    cleanup_p = sub.add_parser("cleanup", help="Run svn cleanup")
    cleanup_p.add_argument("repo", choices=["a", "b"])

    return parser


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _repo(config: SyncConfig, which: str) -> RepoDescriptor:
    return config.repo_a if which == "a" else config.repo_b


def _cmd_sync(config: SyncConfig, args: argparse.Namespace) -> int:
    reconciler = Reconciler(config)
    try:
        report = reconciler.run(args.paths, dry_run=args.dry_run)
    except SyncError as exc:
        print(f"Sync failed: {exc.message}", file=sys.stderr)
        return EXIT_FAILURE

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    elif args.dry_run:
        print(format_sync_report(report))
    else:
        print("\n".join(report.log))
    return EXIT_OK


def _cmd_checkout(config: SyncConfig, args: argparse.Namespace) -> int:
    targets = ["a", "b"] if args.repo == "both" else [args.repo]
    for which in targets:
        repo = _repo(config, which)
        if not repo.url:
            print(f"Error: repo{which.upper()}.url is not set", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        # The working copy may not exist yet, so run from the current directory
        client = SvnClient(
            username=repo.username,
            password=repo.password,
            executable=config.svn_binary,
            timeout=config.timeout,
        )
        logger.info("Checking out %s into %s", repo.url, repo.local_path)
        client.checkout(repo.url, repo.local_path)
        print(f"Checked out {repo.url} -> {repo.local_path}")
    return EXIT_OK


def _cmd_status(config: SyncConfig, args: argparse.Namespace) -> int:
    client = client_for(_repo(config, args.repo), config)
    for entry in client.status(args.path):
        print(
            f"{entry.status_code} {entry.working_revision or '-':>8}  {entry.path}"
        )
    return EXIT_OK


def _cmd_info(config: SyncConfig, args: argparse.Namespace) -> int:
    client = client_for(_repo(config, args.repo), config)
    info = client.info(args.path)
    for label, value in (
        ("URL", info.url),
        ("Revision", info.revision),
        ("Last Changed Author", info.last_changed_author),
        ("Last Changed Rev", info.last_changed_rev),
        ("Last Changed Date", info.last_changed_date),
    ):
        print(f"{label}: {value if value is not None else '-'}")
    return EXIT_OK


def _cmd_cleanup(config: SyncConfig, args: argparse.Namespace) -> int:
    client = client_for(_repo(config, args.repo), config)
    client.cleanup(".")
    print(f"Cleaned up {_repo(config, args.repo).local_path}")
    return EXIT_OK


_COMMANDS = {
    "sync": _cmd_sync,
    "checkout": _cmd_checkout,
    "status": _cmd_status,
    "info": _cmd_info,
    "cleanup": _cmd_cleanup,
}


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, load configuration and dispatch the command.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)

    # .env values must be visible before config resolution
    load_dotenv()

    try:
        config = load_config(args.config, log_file=args.audit_log)
    except (ValueError, FileNotFoundError, yaml.YAMLError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(
        debug=args.debug,
        log_file=args.log_file or config.logging.file,
        debug_format=args.debug_format,
        level=config.logging.level,
        # Audit lines are printed by the commands themselves
        stderr_exclude=() if args.debug else (AUDIT_LOGGER,),
    )

    try:
        return _COMMANDS[args.command](config, args)
    except MirrorError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return EXIT_FAILURE


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
