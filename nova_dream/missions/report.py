"""
Import reporting — markdown report, report title, import history, and saving
the report as a document.
"""

import re
from datetime import datetime
from typing import List, Optional, Sequence

from nova_dream.documents.library import upload_document
from nova_dream.models.mission import (
    DiffClassification,
    ImportChange,
    ImportHistoryEntry,
    MissionDiff,
)
from nova_dream.store.blobs import BlobStore
from nova_dream.store.records import RecordStore

_UNSAFE_FILENAME = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def _or_na(value: Optional[str]) -> str:
    return value if value else "N/A"


def generate_import_report(
    project_name: str,
    import_date: datetime,
    imported_by: str,
    created: int,
    updated: int,
    identical: int,
    total: int,
    diffs: Sequence[MissionDiff],
) -> str:
    """Markdown summary of a roadmap import."""
    lines: List[str] = [
        "# Roadmap Import Report",
        "",
        f"**Project:** {project_name}  ",
        f"**Date:** {import_date.strftime('%B %d, %Y %H:%M')}  ",
        f"**Imported by:** {imported_by}",
        "",
        "---",
        "",
        "## Summary",
        "",
        "| Action | Count | Details |",
        "|--------|-------|---------|",
        f"| Created | {created} | New missions added |",
        f"| Updated | {updated} | Existing missions changed |",
        f"| Identical | {identical} | No change |",
        f"| **TOTAL** | **{total}** | **Missions processed** |",
        "",
        "---",
        "",
    ]

    creates = [d for d in diffs if d.classification == DiffClassification.CREATE]
    if creates:
        lines += [f"## Created missions ({len(creates)})", ""]
        for n, diff in enumerate(creates, start=1):
            lines += [f"### {n}. {diff.proposed.title}", ""]
            if diff.proposed.description:
                lines += [f"**Description:** {diff.proposed.description}", ""]
            if diff.proposed.estimated_duration:
                lines += [f"**Estimated duration:** {diff.proposed.estimated_duration}", ""]
        lines += ["---", ""]

    updates = [d for d in diffs if d.classification == DiffClassification.UPDATE]
    if updates:
        lines += [f"## Updated missions ({len(updates)})", ""]
        for n, diff in enumerate(updates, start=1):
            lines += [f"### {n}. {diff.proposed.title}", ""]
            changes = diff.changes
            if changes and changes.description:
                lines += [
                    "**Description:**",
                    f"- Before: {_or_na(changes.description.old)}",
                    f"- After: {_or_na(changes.description.new)}",
                    "",
                ]
            if changes and changes.estimated_duration:
                lines += [
                    "**Estimated duration:**",
                    f"- Before: {_or_na(changes.estimated_duration.old)}",
                    f"- After: {_or_na(changes.estimated_duration.new)}",
                    "",
                ]
        lines += ["---", ""]

    same = [d for d in diffs if d.classification == DiffClassification.IDENTICAL]
    if same:
        lines += [f"## Identical missions ({len(same)})", ""]
        lines += [f"- {d.proposed.title}" for d in same]
        lines += ["", "---", ""]

    lines.append("**Report generated automatically by Nova Dream OS**")
    return "\n".join(lines) + "\n"


def generate_report_title(project_name: str, import_date: datetime) -> str:
    return f"Import Roadmap - {project_name} - {import_date.strftime('%d-%m-%Y %Hh%M')}"


def build_import_history(
    project_id: str,
    project_name: str,
    diffs: Sequence[MissionDiff],
    imported_at: Optional[datetime] = None,
) -> ImportHistoryEntry:
    """Audit entry with per-mission change details."""
    changes = []
    for diff in diffs:
        change = ImportChange(type=diff.classification, mission_title=diff.proposed.title)
        if diff.classification == DiffClassification.UPDATE and diff.existing:
            change.details = {
                "before": {
                    "duration": diff.existing.estimated_duration,
                    "description": diff.existing.description,
                },
                "after": {
                    "duration": diff.proposed.estimated_duration,
                    "description": diff.proposed.description,
                },
            }
        changes.append(change)

    kinds = [d.classification for d in diffs]
    return ImportHistoryEntry(
        project_id=project_id,
        project_name=project_name,
        created_count=kinds.count(DiffClassification.CREATE),
        updated_count=kinds.count(DiffClassification.UPDATE),
        identical_count=kinds.count(DiffClassification.IDENTICAL),
        total_count=len(kinds),
        changes=changes,
        imported_at=imported_at or datetime.utcnow(),
    )


def save_import_history(
    store: RecordStore, entry: ImportHistoryEntry, owner_id: str
) -> dict:
    return store.insert("import_history", entry.model_dump(mode="json"), owner_id)[0]


def report_file_path(owner_id: str, title: str) -> str:
    return f"{owner_id}/{_UNSAFE_FILENAME.sub('_', title)}.md"


def save_import_report(
    store: RecordStore,
    blobs: BlobStore,
    project_id: str,
    title: str,
    content: str,
    owner_id: str,
) -> dict:
    """Upload the markdown report and register it as a document."""
    return upload_document(
        store,
        blobs,
        owner_id,
        name=title,
        data=content.encode("utf-8"),
        mime_type="text/markdown",
        segment=project_id,
        category="report",
        description="Roadmap import report generated automatically",
        path=report_file_path(owner_id, title),
    )
