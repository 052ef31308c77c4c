"""Sync report formatting functions.

Provides human-readable and machine-readable output for sync runs:

- ``format_sync_report`` -- full post-sync summary.
- ``format_error`` -- uniform rendering of a ``SyncError``.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from codesync.sync.models import ComponentAction, MergeOutcome

if TYPE_CHECKING:
    from codesync.errors import SyncError
    from codesync.sync.models import SyncReport

_ACTION_HEADINGS = [
    (ComponentAction.CREATED, "Created:"),
    (ComponentAction.MERGE_PENDING, "Merged (direct scheme):"),
    (ComponentAction.SKELETON_OVERWRITTEN, "Skeleton overwritten:"),
    (ComponentAction.SKELETON_PROTECTED, "Skeleton left untouched (managed marker found):"),
]

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Sections are only included when they contain at least one entry.
    Components whose skeleton was simply kept are summarised by count.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    lines.append("Sync report")
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Synced {len(report.projects)} projects, "
        f"{len(report.components)} components: "
        f"{len(report.created)} created, {len(report.merges)} merged, "
        f"{len(report.files_written)} files written"
    )
    lines.append("")

    if report.projects:
        lines.append("Projects:")
        for p in report.projects:
            lines.append(
                f"  {p.project_name} ({p.project_id}) v{p.version} [{p.version_range}]"
            )
        lines.append("")

    for action, heading in _ACTION_HEADINGS:
        entries = report.components_with(action)
        if not entries:
            continue
        lines.append(heading)
        for c in entries:
            lines.append(f"  {c.component_name} [{c.project_id}/{c.component_id}]")
        lines.append("")

    overwritten = [m for m in report.merges if m.outcome == MergeOutcome.OVERWRITTEN]
    if overwritten:
        lines.append("Overwritten despite merge failure:")
        for m in overwritten:
            lines.append(f"  {m.skeleton_module_path}")
        lines.append("")

    kept = len(report.components_with(ComponentAction.SKELETON_KEPT))
    if kept > 0:
        lines.append(f"Skeleton kept: {kept} components")
        lines.append("")

    if report.post_sync_commands:
        lines.append("Post-sync commands:")
        for cmd in report.post_sync_commands:
            lines.append(f"  $ {cmd}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------


def format_error(error: SyncError) -> str:
    """Render a handled error with its corrective action."""
    return (
        f"Error ({error.error_type}): {error.message}\n\n"
        f"Action: {error.corrective_action}"
    )


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Args:
        report: The sync report.

    Returns:
        Dict with timestamps, counts, and per-entry details.
    """
    return {
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "projects": len(report.projects),
            "components": len(report.components),
            "created": len(report.created),
            "merged": len(report.merges),
            "protected": len(report.protected),
            "files_written": len(report.files_written),
        },
        "projects": [p.model_dump() for p in report.projects],
        "components": [c.model_dump(mode="json") for c in report.components],
        "merges": [m.model_dump(mode="json") for m in report.merges],
        "files_written": list(report.files_written),
        "post_sync_commands": list(report.post_sync_commands),
    }
