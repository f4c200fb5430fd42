"""Bounded substring search over commit messages and added lines."""

from datetime import UTC, datetime

import git
import structlog

from .base import (
    CommitSearchResponse,
    CommitSearchResult,
    FileSearchMatch,
    LineSearchMatch,
    LineType,
)
from .diff import UnifiedDiffReconstructor
from .repository import GitRepository

logger = structlog.get_logger(__name__)


class HistorySearchEngine:
    """Walks history from HEAD and collects commits matching a search string.

    A commit matches when its message contains the string, or when any line
    it added (relative to its first parent) does. Matching is a plain
    case-sensitive substring test, so the empty string matches every commit.
    """

    def __init__(self, repository: GitRepository, context_lines: int = 3) -> None:
        self.repository = repository
        self.reconstructor = UnifiedDiffReconstructor(repository, context_lines)

    def search(self, search_string: str, max_commits: int) -> CommitSearchResponse:
        response = CommitSearchResponse(search_string=search_string)

        for commit in self.repository.iter_commits(limit=max_commits):
            response.total_commits_searched += 1
            result = self._search_commit(commit, search_string)
            if result is not None:
                response.results.append(result)

        response.total_matching_commits = len(response.results)
        return response

    def _search_commit(
        self, commit: git.Commit, search_string: str
    ) -> CommitSearchResult | None:
        message = commit.message
        if not isinstance(message, str):
            message = message.decode("utf-8", errors="replace")

        file_matches = self._search_content(commit, search_string)
        message_match = search_string in message
        if not message_match and not file_matches:
            return None

        return CommitSearchResult(
            sha=commit.hexsha,
            message=message,
            author=commit.author.name or "Unknown",
            timestamp=datetime.fromtimestamp(commit.committed_date, tz=UTC),
            message_match=message_match,
            file_matches=file_matches,
        )

    def _search_content(
        self, commit: git.Commit, search_string: str
    ) -> list[FileSearchMatch]:
        if not commit.parents:
            return []

        parent = commit.parents[0]
        file_matches: list[FileSearchMatch] = []
        for record in self.repository.diff_trees(parent, commit):
            diff = self.reconstructor.reconstruct(parent, commit, record.path)
            if diff.error_message:
                logger.debug(
                    "git.search_file_skipped",
                    sha=commit.hexsha,
                    file_path=record.path,
                    reason=diff.error_message,
                )
                continue

            line_matches = [
                LineSearchMatch(line_number=line.new_line_number, content=line.text)
                for line in diff.lines
                if line.type is LineType.ADDED
                and line.new_line_number is not None
                and search_string in line.text
            ]
            if line_matches:
                file_matches.append(
                    FileSearchMatch(file_name=record.path, line_matches=line_matches)
                )

        return file_matches
