"""Public git history operations.

Each operation opens its own repository handle, does its work in the
default thread-pool executor and releases the handle before returning.
Failures are logged with the operation's context and re-raised, except
where an operation reports problems in its result instead.
"""

import asyncio
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

import structlog

from .base import (
    ChangeSet,
    CommitDescriptor,
    CommitSearchResponse,
    FileLineDiffResult,
    GitEngineError,
    GitServiceError,
    InvalidArgumentError,
)
from .changes import classify_changes
from .diff import UnifiedDiffReconstructor
from .docs import render_documentation, write_documentation
from .ranges import CommitRangeEngine
from .refs import RefResolver
from .repository import GitRepository, open_repository
from .search import HistorySearchEngine

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _require(value: str | None, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"{field_name} cannot be null or empty")
    return value


@contextmanager
def _logged(operation: str, **context: Any) -> Iterator[None]:
    """Log any failure of ``operation`` with its context, then re-raise."""
    try:
        yield
    except Exception as e:
        logger.error(
            f"{operation}_failed",
            error=str(e),
            error_type=type(e).__name__,
            **context,
        )
        raise


class GitService:
    """Facade over the commit range, diff and search components."""

    def __init__(self, context_lines: int = 3, default_remote: str = "origin") -> None:
        self.context_lines = context_lines
        self.default_remote = default_remote

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, func, *args)

    # -- logs ---------------------------------------------------------------

    async def get_logs(self, repo_path: str, max_commits: int = 50) -> list[CommitDescriptor]:
        return await self._run(self._get_logs_sync, repo_path, max_commits)

    async def get_recent_commits(self, repo_path: str, count: int = 10) -> list[CommitDescriptor]:
        return await self._run(self._get_logs_sync, repo_path, count)

    def _get_logs_sync(self, repo_path: str, max_commits: int) -> list[CommitDescriptor]:
        with _logged("git.get_logs", repo_path=repo_path):
            _require(repo_path, "repo_path")
            logger.info("git.get_logs", repo_path=repo_path, max_commits=max_commits)
            with open_repository(repo_path) as repository:
                commits = repository.iter_commits(limit=max(1, max_commits))
                if not commits:
                    logger.warning("git.no_commits", repo_path=repo_path)
                descriptors = [repository.describe_commit(c) for c in commits]

        logger.info("git.logs_retrieved", count=len(descriptors))
        return descriptors

    async def get_logs_between_branches(
        self,
        repo_path: str,
        branch1: str,
        branch2: str,
        fetch_remote: bool = False,
        remote: str | None = None,
    ) -> list[CommitDescriptor]:
        """Commits on ``branch2`` that are not on ``branch1``.

        With ``fetch_remote`` the remote is fetched first; a failed fetch is
        logged and the comparison continues against local refs.
        """
        return await self._run(
            self._get_logs_between_branches_sync,
            repo_path,
            branch1,
            branch2,
            fetch_remote,
            remote or self.default_remote,
        )

    def _get_logs_between_branches_sync(
        self,
        repo_path: str,
        branch1: str,
        branch2: str,
        fetch_remote: bool,
        remote: str,
    ) -> list[CommitDescriptor]:
        with _logged("git.logs_between_branches", branch1=branch1, branch2=branch2):
            _require(repo_path, "repo_path")
            _require(branch1, "branch1")
            _require(branch2, "branch2")
            logger.info(
                "git.logs_between_branches",
                branch1=branch1,
                branch2=branch2,
                fetch_remote=fetch_remote,
            )
            with open_repository(repo_path) as repository:
                if fetch_remote and not repository.fetch(remote):
                    logger.warning("git.fetch_skipped", remote=remote, using="local refs")
                commits = CommitRangeEngine(repository).branch_range(branch1, branch2)

        logger.info("git.logs_retrieved", count=len(commits))
        return commits

    async def get_logs_between_commits(
        self, repo_path: str, commit1: str, commit2: str
    ) -> list[CommitDescriptor]:
        return await self._run(self._get_logs_between_commits_sync, repo_path, commit1, commit2)

    def _get_logs_between_commits_sync(
        self, repo_path: str, commit1: str, commit2: str
    ) -> list[CommitDescriptor]:
        with _logged("git.logs_between_commits", commit1=commit1, commit2=commit2):
            _require(repo_path, "repo_path")
            _require(commit1, "commit1")
            _require(commit2, "commit2")
            logger.info("git.logs_between_commits", commit1=commit1, commit2=commit2)
            with open_repository(repo_path) as repository:
                commits = CommitRangeEngine(repository).commit_range(commit1, commit2)

        logger.info("git.logs_retrieved", count=len(commits))
        return commits

    # -- file changes -------------------------------------------------------

    async def get_changed_files(self, repo_path: str, commit1: str, commit2: str) -> list[str]:
        return await self._run(self._get_changed_files_sync, repo_path, commit1, commit2)

    def _get_changed_files_sync(self, repo_path: str, commit1: str, commit2: str) -> list[str]:
        with _logged("git.changed_files", commit1=commit1, commit2=commit2):
            _require(repo_path, "repo_path")
            _require(commit1, "commit1")
            _require(commit2, "commit2")
            with open_repository(repo_path) as repository:
                resolver = RefResolver(repository)
                old = resolver.resolve_commit(commit1)
                new = resolver.resolve_commit(commit2)
                files = [r.path for r in repository.diff_trees(old, new)]

        logger.info("git.changed_files_retrieved", count=len(files))
        return files

    async def get_commit_diff_info(self, repo_path: str, commit1: str, commit2: str) -> ChangeSet:
        return await self._run(self._get_commit_diff_info_sync, repo_path, commit1, commit2)

    def _get_commit_diff_info_sync(self, repo_path: str, commit1: str, commit2: str) -> ChangeSet:
        with _logged("git.commit_diff_info", commit1=commit1, commit2=commit2):
            _require(repo_path, "repo_path")
            _require(commit1, "commit1")
            _require(commit2, "commit2")
            with open_repository(repo_path) as repository:
                resolver = RefResolver(repository)
                old = resolver.resolve_commit(commit1)
                new = resolver.resolve_commit(commit2)
                if old.hexsha == new.hexsha:
                    return ChangeSet(commit1=commit1, commit2=commit2)
                change_set = classify_changes(
                    repository.diff_trees(old, new), commit1, commit2
                )

        logger.info("git.commit_diff_info_retrieved", total_changes=change_set.total_changes)
        return change_set

    async def get_detailed_diff(
        self,
        repo_path: str,
        commit1: str,
        commit2: str,
        files: list[str] | None = None,
    ) -> str:
        return await self._run(self._get_detailed_diff_sync, repo_path, commit1, commit2, files)

    def _get_detailed_diff_sync(
        self,
        repo_path: str,
        commit1: str,
        commit2: str,
        files: list[str] | None,
    ) -> str:
        sections: list[str] = []
        with _logged("git.detailed_diff", commit1=commit1, commit2=commit2):
            _require(repo_path, "repo_path")
            _require(commit1, "commit1")
            _require(commit2, "commit2")
            with open_repository(repo_path) as repository:
                resolver = RefResolver(repository)
                old = resolver.resolve_commit(commit1)
                new = resolver.resolve_commit(commit2)
                for record in repository.diff_trees(old, new):
                    if files is not None and record.path not in files:
                        continue
                    paths = list(dict.fromkeys([record.old_path, record.path]))
                    diff_text = repository.unified_diff_text(
                        old, new, paths, context_lines=self.context_lines
                    )
                    sections.append(
                        "\n".join(
                            [
                                f"diff --git a/{record.old_path} b/{record.path}",
                                f"--- a/{record.old_path}",
                                f"+++ b/{record.path}",
                                f"Status: {record.status.value}",
                                "",
                                *_hunks_only(diff_text),
                            ]
                        )
                    )

        logger.info("git.detailed_diff_retrieved", files=len(sections))
        return "\n".join(sections)

    async def get_file_line_diff(
        self, repo_path: str, commit1: str, commit2: str, file_path: str
    ) -> FileLineDiffResult:
        return await self._run(
            self._get_file_line_diff_sync, repo_path, commit1, commit2, file_path
        )

    def _get_file_line_diff_sync(
        self, repo_path: str, commit1: str, commit2: str, file_path: str
    ) -> FileLineDiffResult:
        """Line diff of one file; lookup problems are reported in-band."""
        with _logged("git.file_line_diff", commit1=commit1, commit2=commit2):
            _require(repo_path, "repo_path")
            _require(commit1, "commit1")
            _require(commit2, "commit2")
            _require(file_path, "file_path")
        logger.info(
            "git.file_line_diff",
            commit1=commit1,
            commit2=commit2,
            file_path=file_path,
        )

        result = FileLineDiffResult(file_path=file_path, commit1=commit1, commit2=commit2)
        try:
            with open_repository(repo_path) as repository:
                old = repository.resolve_commit(commit1)
                if old is None:
                    return result.fail(f"Invalid commit hash: {commit1}")
                new = repository.resolve_commit(commit2)
                if new is None:
                    return result.fail(f"Invalid commit hash: {commit2}")

                reconstructor = UnifiedDiffReconstructor(repository, self.context_lines)
                return reconstructor.reconstruct(old, new, file_path, commit1, commit2)
        except GitServiceError as e:
            logger.error(
                "git.file_line_diff_failed",
                commit1=commit1,
                commit2=commit2,
                file_path=file_path,
                error=str(e),
            )
            return result.fail(str(e))

    # -- search -------------------------------------------------------------

    async def search_commits(
        self, repo_path: str, search_string: str, max_commits: int = 100
    ) -> CommitSearchResponse:
        return await self._run(self._search_commits_sync, repo_path, search_string, max_commits)

    def _search_commits_sync(
        self, repo_path: str, search_string: str, max_commits: int
    ) -> CommitSearchResponse:
        with _logged("git.search_commits", repo_path=repo_path):
            _require(repo_path, "repo_path")
            if search_string is None:
                raise InvalidArgumentError("search_string cannot be null")
            logger.info(
                "git.search_commits",
                search_string=search_string[:50],
                max_commits=max_commits,
            )
            with open_repository(repo_path) as repository:
                engine = HistorySearchEngine(repository, self.context_lines)
                try:
                    response = engine.search(search_string, max(1, max_commits))
                except GitEngineError as e:
                    logger.error("git.search_interrupted", error=str(e))
                    return CommitSearchResponse(
                        search_string=search_string, error_message=str(e)
                    )

        logger.info(
            "git.search_completed",
            commits_searched=response.total_commits_searched,
            matching_commits=response.total_matching_commits,
            line_matches=response.total_line_matches,
        )
        return response

    # -- branches and remotes -------------------------------------------------

    async def get_local_branches(self, repo_path: str) -> list[str]:
        return await self._run(self._branches_sync, repo_path, GitRepository.local_branches)

    async def get_remote_branches(self, repo_path: str) -> list[str]:
        return await self._run(self._branches_sync, repo_path, GitRepository.remote_branches)

    async def get_all_branches(self, repo_path: str) -> list[str]:
        """Every branch, prefixed with ``local/`` or ``remote/``."""
        local = await self.get_local_branches(repo_path)
        remote = await self.get_remote_branches(repo_path)
        return [f"local/{b}" for b in local] + [f"remote/{b}" for b in remote]

    def _branches_sync(
        self, repo_path: str, lister: Callable[[GitRepository], list[str]]
    ) -> list[str]:
        with _logged("git.branches", repo_path=repo_path):
            _require(repo_path, "repo_path")
            with open_repository(repo_path) as repository:
                branches = lister(repository)

        logger.info("git.branches_retrieved", count=len(branches))
        return branches

    async def fetch_from_remote(self, repo_path: str, remote: str | None = None) -> bool:
        return await self._run(self._fetch_sync, repo_path, remote or self.default_remote)

    def _fetch_sync(self, repo_path: str, remote: str) -> bool:
        with _logged("git.fetch", remote=remote):
            _require(repo_path, "repo_path")
        logger.info("git.fetch", remote=remote, repo_path=repo_path)
        try:
            with open_repository(repo_path) as repository:
                return repository.fetch(remote)
        except GitServiceError as e:
            logger.error("git.fetch_failed", remote=remote, repo_path=repo_path, error=str(e))
            return False

    # -- documentation --------------------------------------------------------

    async def generate_documentation(
        self, commits: list[CommitDescriptor], fmt: str = "markdown"
    ) -> str:
        logger.info("docs.generate", count=len(commits), format=fmt)
        return render_documentation(commits, fmt)

    async def write_documentation_to_file(self, content: str, file_path: str | Path) -> bool:
        return await self._run(write_documentation, content, file_path)


def _hunks_only(diff_text: str) -> list[str]:
    """Drop git's per-file header lines, keeping everything from the first hunk."""
    lines = diff_text.split("\n")
    for index, line in enumerate(lines):
        if line.startswith("@@"):
            return lines[index:]
    return []
