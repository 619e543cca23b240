"""Sync report formatting functions.

- ``format_sync_report`` -- post-sync summary.
- ``format_dry_run_preview`` -- planned changes grouped by action.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .plan import CollectionAction

if TYPE_CHECKING:
    from .plan import CollectionPlan, SyncReport


def _describe(plan: CollectionPlan) -> str:
    parts = []
    if plan.upserts:
        parts.append(f"{len(plan.upserts)} upserted")
    if plan.removals:
        parts.append(f"{len(plan.removals)} removed")
    if plan.metadata_changed:
        parts.append("metadata")
    return ", ".join(parts) if parts else "no memo changes"


# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Sections are only included when they contain at least one
    collection.  Unchanged collections are summarised by count.
    """
    lines: list[str] = []

    header = "Sync report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    if report.since:
        lines.append(f"Since: {report.since}")
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    counts = report.counts()
    lines.append(
        f"Collections: {counts['collections_created']} created, "
        f"{counts['collections_updated']} updated, "
        f"{counts['collections_deleted']} deleted"
    )
    lines.append(
        f"Memos: {counts['memos_upserted']} upserted, "
        f"{counts['memos_removed']} removed, "
        f"{counts['memos_unchanged']} unchanged"
    )
    lines.append("")

    sections = [
        ("Created:", report.created),
        ("Updated:", report.updated),
        ("Deleted:", report.deleted),
    ]
    for title, plans in sections:
        if not plans:
            continue
        lines.append(title)
        for plan in plans:
            lines.append(f"  {plan.collection_id}: {_describe(plan)}")
        lines.append("")

    if report.unchanged:
        lines.append(f"Unchanged: {len(report.unchanged)} collections")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: SyncReport) -> str:
    """Format a dry-run preview grouped by action.

    Each memo operation is listed under its collection as
    ``+ memo_id`` (upsert) or ``- memo_id`` (remove).
    """
    lines: list[str] = ["DRY RUN -- No changes will be made", ""]

    display_order = [
        CollectionAction.CREATE,
        CollectionAction.UPDATE,
        CollectionAction.DELETE,
    ]
    for action in display_order:
        plans = report.plan.by_action(action)
        if not plans:
            continue
        lines.append(f"[{action.value.upper()}]")
        for plan in plans:
            suffix = " (metadata)" if plan.metadata_changed else ""
            lines.append(f"  {plan.collection_id}{suffix}")
            for memo in plan.upserts:
                lines.append(f"    + {memo.id}")
            for memo_id in plan.removals:
                lines.append(f"    - {memo_id}")
        lines.append("")

    if report.unchanged:
        lines.append(
            f"Unchanged: {len(report.unchanged)} collections"
        )
        lines.append("")

    if not report.plan.has_writes:
        lines.append("No changes needed.")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a JSON-serialisable dict."""
    collections = []
    for plan in report.plan.collections:
        collections.append(
            {
                "collection_id": plan.collection_id,
                "action": plan.action.value,
                "metadata_changed": plan.metadata_changed,
                "upserted": [memo.id for memo in plan.upserts],
                "removed": list(plan.removals),
                "unchanged": plan.unchanged_memos,
            }
        )

    return {
        "dry_run": report.dry_run,
        "since": report.since,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": report.counts(),
        "collections": collections,
    }
