"""Bucketing of tree-to-tree change records."""

from collections.abc import Iterable

from .base import ChangeKind, ChangeRecord, ChangeSet


def classify_changes(
    records: Iterable[ChangeRecord], commit1: str, commit2: str
) -> ChangeSet:
    """Partition change records into added/modified/deleted/renamed.

    Engine order is kept within each bucket. Copies, type changes and
    unmerged entries have no bucket and are dropped.
    """
    change_set = ChangeSet(commit1=commit1, commit2=commit2)
    for record in records:
        if record.status is ChangeKind.ADDED:
            change_set.added.append(record.path)
        elif record.status is ChangeKind.MODIFIED:
            change_set.modified.append(record.path)
        elif record.status is ChangeKind.DELETED:
            change_set.deleted.append(record.path)
        elif record.status is ChangeKind.RENAMED:
            change_set.renamed.append(f"{record.old_path} -> {record.path}")
    return change_set
