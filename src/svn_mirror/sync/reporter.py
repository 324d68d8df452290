"""Sync report formatting functions.

- ``format_sync_report`` -- human-readable summary of a run.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport

from .models import EntryKind

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_sync_report(report: SyncReport) -> str:
    """Format a sync report as human-readable text.

    Sections are only included when they contain at least one operation.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"Sync report for {', '.join(report.paths) or '(no paths)'}"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"{len(report.operations)} operations: "
        f"{len(report.added)} added, {len(report.deleted)} deleted"
    )
    lines.append("")

    if report.added:
        lines.append("Added:")
        for op in report.added:
            suffix = "/" if op.kind == EntryKind.DIRECTORY else ""
            lines.append(f"  {op.relative_path}{suffix}")
        lines.append("")

    if report.deleted:
        lines.append("Deleted:")
        for op in report.deleted:
            suffix = "/" if op.kind == EntryKind.DIRECTORY else ""
            lines.append(f"  {op.relative_path}{suffix}")
        lines.append("")

    if not report.operations:
        lines.append("No changes needed.")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Args:
        report: The sync report.

    Returns:
        Dict with run info, counts, operations and log lines.
    """
    return {
        "paths": list(report.paths),
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.operations),
            "added": len(report.added),
            "deleted": len(report.deleted),
        },
        "operations": [
            {
                "action": op.action.value,
                "kind": op.kind.value,
                "path": op.relative_path,
            }
            for op in report.operations
        ],
        "log": list(report.log),
    }
