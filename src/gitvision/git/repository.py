"""GitPython-backed repository handle.

Every public operation opens one handle with :func:`open_repository` and
releases it before returning. Nothing here is cached between handles.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

import git
import structlog
from git.exc import ODBError

from .base import (
    ChangeKind,
    ChangeRecord,
    CommitDescriptor,
    GitEngineError,
    RepositoryInvalidError,
    RepositoryNotFoundError,
)

logger = structlog.get_logger(__name__)

# Well-known id of the empty tree, used as the missing side of one-sided diffs
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

BINARY_SNIFF_BYTES = 8192


class GitRepository:
    """Thin wrapper over ``git.Repo`` exposing the primitives the core needs."""

    def __init__(self, repo_path: str) -> None:
        path = Path(repo_path).expanduser()
        if not path.exists():
            raise RepositoryNotFoundError(
                f"Repository path does not exist: {repo_path}"
            )
        try:
            self.repo = git.Repo(path)
        except git.NoSuchPathError as e:
            raise RepositoryNotFoundError(
                f"Repository path does not exist: {repo_path}"
            ) from e
        except git.InvalidGitRepositoryError as e:
            raise RepositoryInvalidError(
                f"Path is not a valid git repository: {repo_path}"
            ) from e
        self.repo_path = path.resolve()

    def close(self) -> None:
        self.repo.close()

    # -- refs ---------------------------------------------------------------

    def resolve_branch(self, name: str) -> git.Reference | None:
        """Find a local branch, then a remote-tracking branch, named ``name``."""
        for head in self.repo.heads:
            if head.name == name:
                return head
        for ref in self.repo.refs:
            if isinstance(ref, git.RemoteReference) and ref.name == name:
                return ref
        return None

    def resolve_commit(self, rev: str) -> git.Commit | None:
        try:
            return self.repo.commit(rev)
        except (ODBError, ValueError):
            return None

    def local_branches(self) -> list[str]:
        return [head.name for head in self.repo.heads]

    def remote_branches(self) -> list[str]:
        return [
            ref.name for ref in self.repo.refs if isinstance(ref, git.RemoteReference)
        ]

    def fetch(self, remote_name: str = "origin") -> bool:
        """Fetch from a remote. Returns False instead of raising on failure."""
        try:
            remote = self.repo.remote(remote_name)
        except ValueError:
            logger.warning("git.remote_not_found", remote=remote_name)
            return False

        try:
            remote.fetch()
        except git.GitCommandError as e:
            logger.error(
                "git.fetch_failed",
                remote=remote_name,
                repo_path=str(self.repo_path),
                error=str(e),
            )
            return False

        logger.info("git.fetched", remote=remote_name)
        return True

    # -- history ------------------------------------------------------------

    def iter_commits(
        self,
        exclude: git.Commit | None = None,
        include: git.Commit | None = None,
        limit: int | None = None,
    ) -> list[git.Commit]:
        """List commits reachable from ``include`` (HEAD by default) but not
        from ``exclude``, in git's native newest-first order."""
        rev: str | None = include.hexsha if include is not None else None
        if exclude is not None:
            rev = f"{exclude.hexsha}..{rev or 'HEAD'}"

        kwargs: dict[str, int] = {}
        if limit is not None:
            kwargs["max_count"] = limit

        try:
            return list(self.repo.iter_commits(rev, **kwargs))
        except ValueError:
            return []
        except git.GitCommandError as e:
            raise GitEngineError(f"Git command failed: {e}") from e

    def describe_commit(self, commit: git.Commit) -> CommitDescriptor:
        changed_files: list[str] = []
        changes: list[str] = []
        if commit.parents:
            for record in self.diff_trees(commit.parents[0], commit):
                changed_files.append(record.path)
                changes.append(f"{record.status.value}: {record.path}")

        message = commit.message
        if not isinstance(message, str):
            message = message.decode("utf-8", errors="replace")

        return CommitDescriptor(
            sha=commit.hexsha,
            message=message,
            author=commit.author.name or "Unknown",
            author_email=commit.author.email or "",
            timestamp=datetime.fromtimestamp(commit.committed_date, tz=UTC),
            changed_files=changed_files,
            changes=changes,
        )

    # -- diffs --------------------------------------------------------------

    def diff_trees(self, old: git.Commit, new: git.Commit) -> list[ChangeRecord]:
        """File-level changes going from ``old`` to ``new``."""
        try:
            diffs = old.diff(new)
        except git.GitCommandError as e:
            raise GitEngineError(f"Git diff failed: {e}") from e

        records: list[ChangeRecord] = []
        for diff in diffs:
            path = diff.b_path or diff.a_path
            old_path = diff.a_path or diff.b_path
            if path is None or old_path is None:
                continue
            records.append(
                ChangeRecord(
                    path=path,
                    old_path=old_path,
                    status=ChangeKind.from_code(diff.change_type),
                )
            )
        return records

    def unified_diff_text(
        self,
        old: git.Commit | None,
        new: git.Commit | None,
        paths: list[str],
        context_lines: int = 3,
    ) -> str:
        """Raw unified diff text; a missing side is diffed against the empty tree."""
        old_rev = old.hexsha if old is not None else EMPTY_TREE_SHA
        new_rev = new.hexsha if new is not None else EMPTY_TREE_SHA
        try:
            return self.repo.git.diff(
                f"--unified={context_lines}",
                "--no-color",
                "--no-ext-diff",
                "--no-textconv",
                "-M",
                old_rev,
                new_rev,
                "--",
                *paths,
            )
        except git.GitCommandError as e:
            raise GitEngineError(f"Git diff failed: {e}") from e

    # -- blobs --------------------------------------------------------------

    def _blob(self, commit: git.Commit, path: str) -> git.Blob | None:
        try:
            entry = commit.tree / path
        except KeyError:
            return None
        if entry.type != "blob":
            return None
        return entry

    def has_file(self, commit: git.Commit, path: str) -> bool:
        return self._blob(commit, path) is not None

    def blob_lines(self, commit: git.Commit, path: str) -> list[str]:
        """Text lines of a file at a commit; empty for missing or binary files."""
        blob = self._blob(commit, path)
        if blob is None:
            return []
        data = blob.data_stream.read()
        if b"\x00" in data[:BINARY_SNIFF_BYTES]:
            return []
        lines = data.decode("utf-8", errors="replace").split("\n")
        if lines[-1] == "":
            lines.pop()
        return lines

    def blob_line_count(self, commit: git.Commit, path: str) -> int:
        return len(self.blob_lines(commit, path))


@contextmanager
def open_repository(repo_path: str) -> Iterator[GitRepository]:
    """Open a repository handle that is always closed on exit."""
    repository = GitRepository(repo_path)
    try:
        yield repository
    finally:
        repository.close()
