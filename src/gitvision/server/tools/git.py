"""Git history tools for MCP server."""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

from gitvision.git import (
    ChangeSet,
    CommitDescriptor,
    CommitSearchResponse,
    FileLineDiffResult,
    GitServiceError,
    InvalidArgumentError,
    RefNotFoundError,
    RepositoryInvalidError,
    RepositoryNotFoundError,
)
from gitvision.server.errors import MCPError, NotFoundError, ValidationError
from gitvision.server.tools import ServiceContainer
from gitvision.server.tools.validation import (
    validate_file_list,
    validate_positive_int,
    validate_required,
    validate_search_string,
)

logger = structlog.get_logger()

T = TypeVar("T")

# Placeholder for a line number that has no position on one side of a diff
NO_LINE = "-"


def format_commit(commit: CommitDescriptor) -> dict[str, Any]:
    return {
        "sha": commit.sha,
        "message": commit.message,
        "author": commit.author,
        "author_email": commit.author_email,
        "timestamp": commit.timestamp.isoformat(),
        "changed_files": list(commit.changed_files),
        "changes": list(commit.changes),
    }


def format_change_set(change_set: ChangeSet) -> dict[str, Any]:
    return {
        "commit1": change_set.commit1,
        "commit2": change_set.commit2,
        "added_files": list(change_set.added),
        "modified_files": list(change_set.modified),
        "deleted_files": list(change_set.deleted),
        "renamed_files": list(change_set.renamed),
        "total_changes": change_set.total_changes,
    }


def format_line_diff(result: FileLineDiffResult) -> dict[str, Any]:
    """Render a line diff, with ``-`` standing in for absent line numbers."""
    return {
        "file_path": result.file_path,
        "commit1": result.commit1,
        "commit2": result.commit2,
        "file_exists_in_both_commits": result.file_exists_in_both_commits,
        "lines": [
            {
                "line_number": line.line_number,
                "old_line_number": (
                    line.old_line_number if line.old_line_number is not None else NO_LINE
                ),
                "new_line_number": (
                    line.new_line_number if line.new_line_number is not None else NO_LINE
                ),
                "content": line.content,
                "type": line.type.value,
            }
            for line in result.lines
        ],
        "added_lines": result.added_lines,
        "deleted_lines": result.deleted_lines,
        "modified_lines": result.modified_lines,
        "total_lines": result.total_lines,
        "error_message": result.error_message,
    }


def format_search_response(response: CommitSearchResponse) -> dict[str, Any]:
    return {
        "search_string": response.search_string,
        "total_commits_searched": response.total_commits_searched,
        "total_matching_commits": response.total_matching_commits,
        "total_line_matches": response.total_line_matches,
        "results": [
            {
                "sha": result.sha,
                "message": result.message,
                "author": result.author,
                "timestamp": result.timestamp.isoformat(),
                "message_match": result.message_match,
                "total_matches": result.total_matches,
                "file_matches": [
                    {
                        "file_name": file_match.file_name,
                        "line_matches": [
                            {"line_number": m.line_number, "content": m.content}
                            for m in file_match.line_matches
                        ],
                    }
                    for file_match in result.file_matches
                ],
            }
            for result in response.results
        ],
        "error_message": response.error_message,
    }


async def call_git(action: str, operation: Awaitable[T]) -> T:
    """Await a service call, translating git errors into MCP errors."""
    try:
        return await operation
    except InvalidArgumentError as e:
        raise ValidationError(str(e)) from e
    except (RepositoryNotFoundError, RefNotFoundError) as e:
        raise NotFoundError(str(e)) from e
    except RepositoryInvalidError as e:
        raise ValidationError(str(e)) from e
    except GitServiceError as e:
        logger.error(f"{action}_failed", error=str(e), exc_info=True)
        raise MCPError(f"Failed to {action.replace('_', ' ')}: {e}") from e


def get_git_tools(
    services: ServiceContainer,
) -> dict[str, Callable[..., Awaitable[Any]]]:
    """Get git tool implementations for the dispatcher.

    Args:
        services: Initialized service container

    Returns:
        Dictionary mapping tool names to their implementations
    """
    settings = services.settings
    git_service = services.git_service

    async def get_git_logs(
        max_commits: int | None = None,
        path: str | None = None,
    ) -> list[dict[str, Any]]:
        """Most recent commits reachable from HEAD, newest first.

        Args:
            max_commits: Max commits to return (default from settings)
            path: Repository path (default from settings, then CWD)

        Returns:
            List of commit descriptors
        """
        if max_commits is None:
            max_commits = settings.default_max_commits
        validate_positive_int(max_commits, "max_commits", settings.max_commits_limit)
        repo_path = settings.resolve_repo_path(path)
        logger.info("git.get_git_logs", repo_path=repo_path, max_commits=max_commits)

        commits = await call_git(
            "read_git_logs", git_service.get_logs(repo_path, max_commits)
        )
        return [format_commit(c) for c in commits]

    async def get_recent_commits(
        count: int = 10,
        path: str | None = None,
    ) -> list[dict[str, Any]]:
        """The ``count`` most recent commits."""
        validate_positive_int(count, "count", settings.max_commits_limit)
        repo_path = settings.resolve_repo_path(path)

        commits = await call_git(
            "read_recent_commits", git_service.get_recent_commits(repo_path, count)
        )
        return [format_commit(c) for c in commits]

    async def get_git_logs_between_branches(
        branch1: str,
        branch2: str,
        fetch_remote: bool = False,
        remote: str | None = None,
        path: str | None = None,
    ) -> list[dict[str, Any]]:
        """Commits reachable from branch2 but not from branch1.

        Args:
            branch1: Base branch (local or remote-tracking)
            branch2: Branch whose extra commits are listed
            fetch_remote: Fetch the remote before comparing
            remote: Remote to fetch (default from settings)
            path: Repository path

        Returns:
            List of commit descriptors
        """
        validate_required(branch1, "branch1")
        validate_required(branch2, "branch2")
        repo_path = settings.resolve_repo_path(path)
        logger.info(
            "git.get_git_logs_between_branches",
            branch1=branch1,
            branch2=branch2,
            fetch_remote=fetch_remote,
        )

        commits = await call_git(
            "compare_branches",
            git_service.get_logs_between_branches(
                repo_path, branch1, branch2, fetch_remote=fetch_remote, remote=remote
            ),
        )
        return [format_commit(c) for c in commits]

    async def get_git_logs_between_commits(
        commit1: str,
        commit2: str,
        path: str | None = None,
    ) -> list[dict[str, Any]]:
        """Commits reachable from commit2 but not from commit1."""
        validate_required(commit1, "commit1")
        validate_required(commit2, "commit2")
        repo_path = settings.resolve_repo_path(path)

        commits = await call_git(
            "compare_commits",
            git_service.get_logs_between_commits(repo_path, commit1, commit2),
        )
        return [format_commit(c) for c in commits]

    async def get_changed_files_between_commits(
        commit1: str,
        commit2: str,
        path: str | None = None,
    ) -> list[str]:
        validate_required(commit1, "commit1")
        validate_required(commit2, "commit2")
        repo_path = settings.resolve_repo_path(path)

        return await call_git(
            "list_changed_files",
            git_service.get_changed_files(repo_path, commit1, commit2),
        )

    async def get_detailed_diff_between_commits(
        commit1: str,
        commit2: str,
        files: list[str] | None = None,
        path: str | None = None,
    ) -> str:
        """Unified diff text for every changed file, optionally filtered.

        Args:
            commit1: Old side of the diff
            commit2: New side of the diff
            files: Only include these paths (new-side names)
            path: Repository path

        Returns:
            Per-file header block followed by that file's hunks
        """
        validate_required(commit1, "commit1")
        validate_required(commit2, "commit2")
        files = validate_file_list(files)
        repo_path = settings.resolve_repo_path(path)

        diff = await call_git(
            "build_detailed_diff",
            git_service.get_detailed_diff(repo_path, commit1, commit2, files),
        )
        return diff or "No differences found"

    async def get_commit_diff_info(
        commit1: str,
        commit2: str,
        path: str | None = None,
    ) -> dict[str, Any]:
        validate_required(commit1, "commit1")
        validate_required(commit2, "commit2")
        repo_path = settings.resolve_repo_path(path)

        change_set = await call_git(
            "classify_changes",
            git_service.get_commit_diff_info(repo_path, commit1, commit2),
        )
        return format_change_set(change_set)

    async def get_file_line_diff_between_commits(
        commit1: str,
        commit2: str,
        file_path: str,
        path: str | None = None,
    ) -> dict[str, Any]:
        """Line-by-line diff of one file.

        Lookup problems (unknown commit, file missing from both sides) come
        back in ``error_message`` rather than as a tool error.
        """
        validate_required(commit1, "commit1")
        validate_required(commit2, "commit2")
        validate_required(file_path, "file_path")
        repo_path = settings.resolve_repo_path(path)

        result = await call_git(
            "diff_file_lines",
            git_service.get_file_line_diff(repo_path, commit1, commit2, file_path),
        )
        return format_line_diff(result)

    async def search_commits_for_string(
        search_string: str,
        max_commits: int | None = None,
        path: str | None = None,
    ) -> dict[str, Any]:
        """Find commits whose message or added lines contain a string.

        Args:
            search_string: Case-sensitive substring; "" matches every commit
            max_commits: Commits to traverse from HEAD (default from settings)
            path: Repository path

        Returns:
            Search summary with per-commit, per-file line matches
        """
        validate_search_string(search_string)
        if max_commits is None:
            max_commits = settings.search_max_commits
        validate_positive_int(max_commits, "max_commits", settings.max_commits_limit)
        repo_path = settings.resolve_repo_path(path)
        logger.info(
            "git.search_commits_for_string",
            search_string=search_string[:50],
            max_commits=max_commits,
        )

        response = await call_git(
            "search_commits",
            git_service.search_commits(repo_path, search_string, max_commits),
        )
        return format_search_response(response)

    async def get_local_branches(path: str | None = None) -> list[str]:
        repo_path = settings.resolve_repo_path(path)
        return await call_git("list_branches", git_service.get_local_branches(repo_path))

    async def get_remote_branches(path: str | None = None) -> list[str]:
        repo_path = settings.resolve_repo_path(path)
        return await call_git("list_branches", git_service.get_remote_branches(repo_path))

    async def get_all_branches(path: str | None = None) -> list[str]:
        """Local and remote-tracking branches, prefixed local/ and remote/."""
        repo_path = settings.resolve_repo_path(path)
        return await call_git("list_branches", git_service.get_all_branches(repo_path))

    async def fetch_from_remote(
        remote: str | None = None,
        path: str | None = None,
    ) -> dict[str, Any]:
        remote_name = remote or settings.default_remote
        repo_path = settings.resolve_repo_path(path)

        success = await call_git(
            "fetch_remote", git_service.fetch_from_remote(repo_path, remote_name)
        )
        return {"remote": remote_name, "success": success}

    return {
        "get_git_logs": get_git_logs,
        "get_recent_commits": get_recent_commits,
        "get_git_logs_between_branches": get_git_logs_between_branches,
        "get_git_logs_between_commits": get_git_logs_between_commits,
        "get_changed_files_between_commits": get_changed_files_between_commits,
        "get_detailed_diff_between_commits": get_detailed_diff_between_commits,
        "get_commit_diff_info": get_commit_diff_info,
        "get_file_line_diff_between_commits": get_file_line_diff_between_commits,
        "search_commits_for_string": search_commits_for_string,
        "get_local_branches": get_local_branches,
        "get_remote_branches": get_remote_branches,
        "get_all_branches": get_all_branches,
        "fetch_from_remote": fetch_from_remote,
    }
