"""Reconstruction of classified, numbered diff lines from unified diff text.

The parser is a single forward scan. Lines before the first hunk header
(``diff --git``, ``index``, ``---``/``+++``) are ignored. Inside a hunk,
``+`` lines are additions, ``-`` lines are deletions and any other
non-empty line is context, except git's "No newline at end of file"
marker, which belongs to neither side and is skipped. Every emitted
record takes the next sequence number; the old/new counters advance only
on their own side.

When git expresses a pure addition or deletion without a hunk (empty or
binary blobs, for example), the existing side's blob is emitted line by
line instead.
"""

import re

import git
import structlog

from .base import FileLineDiffResult, LineDiffRecord, LineType
from .repository import GitRepository

logger = structlog.get_logger(__name__)

# @@ -<oldStart>[,<oldLen>] +<newStart>[,<newLen>] @@
HUNK_HEADER = re.compile(r"@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def parse_unified_diff(diff_text: str) -> list[LineDiffRecord]:
    """Classify and number every line of every hunk in ``diff_text``."""
    records: list[LineDiffRecord] = []
    if not diff_text:
        return records

    sequence = 1
    old_line = new_line = 0
    in_hunk = False

    for line in diff_text.split("\n"):
        if line.startswith("@@"):
            match = HUNK_HEADER.match(line)
            in_hunk = match is not None
            if match is None:
                continue
            records.append(
                LineDiffRecord(
                    line_number=sequence,
                    old_line_number=None,
                    new_line_number=None,
                    content=line,
                    type=LineType.HEADER,
                )
            )
            sequence += 1
            old_line = int(match.group(1))
            new_line = int(match.group(3))
            continue

        if not in_hunk or not line or line.startswith("\\"):
            continue

        if line.startswith("+"):
            record = LineDiffRecord(sequence, None, new_line, line, LineType.ADDED)
            new_line += 1
        elif line.startswith("-"):
            record = LineDiffRecord(sequence, old_line, None, line, LineType.DELETED)
            old_line += 1
        else:
            record = LineDiffRecord(sequence, old_line, new_line, line, LineType.CONTEXT)
            old_line += 1
            new_line += 1

        records.append(record)
        sequence += 1

    return records


def synthesize_one_sided(blob_lines: list[str], added: bool) -> list[LineDiffRecord]:
    """Emit a whole blob as added (new side only) or deleted (old side only)."""
    records: list[LineDiffRecord] = []
    for index, text in enumerate(blob_lines, start=1):
        if added:
            records.append(LineDiffRecord(index, None, index, f"+{text}", LineType.ADDED))
        else:
            records.append(LineDiffRecord(index, index, None, f"-{text}", LineType.DELETED))
    return records


def summarize(result: FileLineDiffResult, lines: list[LineDiffRecord]) -> FileLineDiffResult:
    """Attach ``lines`` to ``result`` and recompute its counters."""
    result.lines = lines
    result.added_lines = sum(1 for line in lines if line.type is LineType.ADDED)
    result.deleted_lines = sum(1 for line in lines if line.type is LineType.DELETED)
    result.modified_lines = 0
    result.total_lines = sum(1 for line in lines if line.type is not LineType.HEADER)
    return result


class UnifiedDiffReconstructor:
    """Builds a :class:`FileLineDiffResult` for one file between two commits."""

    def __init__(self, repository: GitRepository, context_lines: int = 3) -> None:
        self.repository = repository
        self.context_lines = context_lines

    def reconstruct(
        self,
        old: git.Commit,
        new: git.Commit,
        file_path: str,
        commit1: str | None = None,
        commit2: str | None = None,
    ) -> FileLineDiffResult:
        """Diff ``file_path`` from ``old`` to ``new``.

        ``commit1``/``commit2`` are the labels reported back to the caller;
        they default to the full commit ids.
        """
        result = FileLineDiffResult(
            file_path=file_path,
            commit1=commit1 or old.hexsha,
            commit2=commit2 or new.hexsha,
        )

        in_old = self.repository.has_file(old, file_path)
        in_new = self.repository.has_file(new, file_path)
        if not in_old and not in_new:
            return result.fail(f"File {file_path} does not exist in either commit")

        result.file_exists_in_both_commits = in_old and in_new

        diff_text = self.repository.unified_diff_text(
            old if in_old else None,
            new if in_new else None,
            [file_path],
            context_lines=self.context_lines,
        )
        lines = parse_unified_diff(diff_text)

        if not lines and in_old != in_new:
            source = new if in_new else old
            lines = synthesize_one_sided(
                self.repository.blob_lines(source, file_path), added=in_new
            )
            logger.debug(
                "git.diff_synthesized",
                file_path=file_path,
                side="new" if in_new else "old",
                lines=len(lines),
            )

        return summarize(result, lines)
