"""Shared fixtures for server and MCP tool tests."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from gitvision.git import (
    ChangeSet,
    CommitDescriptor,
    CommitSearchResponse,
    CommitSearchResult,
    FileLineDiffResult,
    FileSearchMatch,
    LineDiffRecord,
    LineSearchMatch,
    LineType,
)
from gitvision.server.config import ServerSettings
from gitvision.server.tools import ServiceContainer


@pytest.fixture
def settings(tmp_path) -> ServerSettings:
    """Settings pointing at a scratch repository path."""
    return ServerSettings(repo_path=str(tmp_path))


@pytest.fixture
def sample_commit():
    """Factory for commit descriptors."""

    def _create(sha: str = "a" * 40, message: str = "Test commit") -> CommitDescriptor:
        return CommitDescriptor(
            sha=sha,
            message=message,
            author="Test User",
            author_email="test@example.com",
            timestamp=datetime(2025, 1, 1, tzinfo=UTC),
            changed_files=["app.py"],
            changes=["Modified: app.py"],
        )

    return _create


@pytest.fixture
def mock_git_service(sample_commit):
    """Create mock git service with canned results."""
    service = AsyncMock()
    service.get_logs.return_value = [sample_commit()]
    service.get_recent_commits.return_value = [sample_commit()]
    service.get_logs_between_branches.return_value = [sample_commit()]
    service.get_logs_between_commits.return_value = [sample_commit()]
    service.get_changed_files.return_value = ["app.py"]
    service.get_detailed_diff.return_value = "diff --git a/app.py b/app.py"
    service.get_commit_diff_info.return_value = ChangeSet(
        commit1="a", commit2="b", added=["new.py"], renamed=["old.txt -> new.txt"]
    )
    service.get_file_line_diff.return_value = FileLineDiffResult(
        file_path="app.py",
        commit1="a",
        commit2="b",
        file_exists_in_both_commits=True,
        lines=[
            LineDiffRecord(1, None, None, "@@ -1,1 +1,1 @@", LineType.HEADER),
            LineDiffRecord(2, 1, None, "-old", LineType.DELETED),
            LineDiffRecord(3, None, 1, "+new", LineType.ADDED),
        ],
        added_lines=1,
        deleted_lines=1,
        total_lines=2,
    )
    service.search_commits.return_value = CommitSearchResponse(
        search_string="needle",
        total_commits_searched=5,
        total_matching_commits=1,
        results=[
            CommitSearchResult(
                sha="c" * 40,
                message="Add needle",
                author="Test User",
                timestamp=datetime(2025, 1, 1, tzinfo=UTC),
                message_match=True,
                file_matches=[
                    FileSearchMatch(
                        file_name="app.py",
                        line_matches=[LineSearchMatch(3, "needle = 1")],
                    )
                ],
            )
        ],
    )
    service.get_local_branches.return_value = ["main"]
    service.get_remote_branches.return_value = ["origin/main"]
    service.get_all_branches.return_value = ["local/main", "remote/origin/main"]
    service.fetch_from_remote.return_value = True
    service.generate_documentation.return_value = "# Git Commit Documentation"
    service.write_documentation_to_file.return_value = True
    return service


@pytest.fixture
def mock_services(mock_git_service, settings) -> ServiceContainer:
    """Create service container around the mock git service."""
    return ServiceContainer(git_service=mock_git_service, settings=settings)
