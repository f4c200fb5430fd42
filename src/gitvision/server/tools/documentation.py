"""Commit documentation tools for MCP server."""

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import structlog

from gitvision.git import CommitDescriptor
from gitvision.server.tools import ServiceContainer
from gitvision.server.tools.git import call_git
from gitvision.server.tools.validation import (
    validate_doc_format,
    validate_positive_int,
    validate_required,
)

logger = structlog.get_logger()


def resolve_output_path(file_path: str, repo_path: str) -> Path:
    """Anchor a relative output path at the repository root."""
    path = Path(file_path).expanduser()
    if not path.is_absolute():
        path = Path(repo_path) / path
    return path


def get_documentation_tools(
    services: ServiceContainer,
) -> dict[str, Callable[..., Awaitable[Any]]]:
    """Get documentation tool implementations for the dispatcher.

    Args:
        services: Initialized service container

    Returns:
        Dictionary mapping tool names to their implementations
    """
    settings = services.settings
    git_service = services.git_service

    async def _render(commits: list[CommitDescriptor], output_format: str | None) -> str:
        fmt = validate_doc_format(output_format or settings.documentation_format)
        return await git_service.generate_documentation(commits, fmt)

    async def _write(content: str, path: Path, label: str) -> str:
        if await git_service.write_documentation_to_file(content, path):
            return f"{label} successfully written to {path}"
        return "Failed to write documentation to file"

    async def generate_git_documentation(
        max_commits: int | None = None,
        output_format: str | None = None,
        path: str | None = None,
    ) -> str:
        """Render the most recent commits as documentation.

        Args:
            max_commits: Commits to document (default from settings)
            output_format: markdown, html or text (default from settings)
            path: Repository path

        Returns:
            Rendered documentation
        """
        if max_commits is None:
            max_commits = settings.default_max_commits
        validate_positive_int(max_commits, "max_commits", settings.max_commits_limit)
        if output_format is not None:
            validate_doc_format(output_format)
        repo_path = settings.resolve_repo_path(path)
        logger.info(
            "docs.generate_git_documentation",
            max_commits=max_commits,
            output_format=output_format,
        )

        commits = await call_git(
            "read_git_logs", git_service.get_logs(repo_path, max_commits)
        )
        return await _render(commits, output_format)

    async def generate_git_documentation_to_file(
        file_path: str,
        max_commits: int | None = None,
        output_format: str | None = None,
        path: str | None = None,
    ) -> str:
        """Render recent commits and write them to ``file_path``.

        Relative paths are resolved against the repository root.
        """
        validate_required(file_path, "file_path")
        if max_commits is None:
            max_commits = settings.default_max_commits
        validate_positive_int(max_commits, "max_commits", settings.max_commits_limit)
        if output_format is not None:
            validate_doc_format(output_format)
        repo_path = settings.resolve_repo_path(path)
        output_path = resolve_output_path(file_path, repo_path)

        commits = await call_git(
            "read_git_logs", git_service.get_logs(repo_path, max_commits)
        )
        content = await _render(commits, output_format)
        return await _write(content, output_path, "Documentation")

    async def compare_branches_documentation(
        branch1: str,
        branch2: str,
        file_path: str,
        output_format: str | None = None,
        fetch_remote: bool = False,
        path: str | None = None,
    ) -> str:
        """Document the commits on branch2 that are not on branch1."""
        validate_required(branch1, "branch1")
        validate_required(branch2, "branch2")
        validate_required(file_path, "file_path")
        if output_format is not None:
            validate_doc_format(output_format)
        repo_path = settings.resolve_repo_path(path)
        output_path = resolve_output_path(file_path, repo_path)
        logger.info(
            "docs.compare_branches",
            branch1=branch1,
            branch2=branch2,
            file_path=str(output_path),
        )

        commits = await call_git(
            "compare_branches",
            git_service.get_logs_between_branches(
                repo_path, branch1, branch2, fetch_remote=fetch_remote
            ),
        )
        content = await _render(commits, output_format)
        return await _write(content, output_path, "Branch comparison documentation")

    async def compare_commits_documentation(
        commit1: str,
        commit2: str,
        file_path: str,
        output_format: str | None = None,
        path: str | None = None,
    ) -> str:
        """Document the commits reachable from commit2 but not commit1."""
        validate_required(commit1, "commit1")
        validate_required(commit2, "commit2")
        validate_required(file_path, "file_path")
        if output_format is not None:
            validate_doc_format(output_format)
        repo_path = settings.resolve_repo_path(path)
        output_path = resolve_output_path(file_path, repo_path)
        logger.info(
            "docs.compare_commits",
            commit1=commit1,
            commit2=commit2,
            file_path=str(output_path),
        )

        commits = await call_git(
            "compare_commits",
            git_service.get_logs_between_commits(repo_path, commit1, commit2),
        )
        content = await _render(commits, output_format)
        return await _write(content, output_path, "Commit comparison documentation")

    return {
        "generate_git_documentation": generate_git_documentation,
        "generate_git_documentation_to_file": generate_git_documentation_to_file,
        "compare_branches_documentation": compare_branches_documentation,
        "compare_commits_documentation": compare_commits_documentation,
    }
