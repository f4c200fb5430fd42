"""Commit ranges computed from reachability between two endpoints."""

from collections.abc import Callable

import git
import structlog

from .base import CommitDescriptor
from .refs import RefResolver
from .repository import GitRepository

logger = structlog.get_logger(__name__)


class CommitRangeEngine:
    """Lists the commits reachable from one endpoint but not from another.

    Equivalent to ``git log exclude..include``. Ordering is whatever the
    engine yields (newest first) and is never re-sorted here.
    """

    def __init__(self, repository: GitRepository) -> None:
        self.repository = repository
        self.resolver = RefResolver(repository)

    def commits_between(self, exclude_ref: str, include_ref: str) -> list[CommitDescriptor]:
        """Range between two refs given in branch or commit form."""
        return self._range(self.resolver.resolve, exclude_ref, include_ref)

    def branch_range(self, exclude_branch: str, include_branch: str) -> list[CommitDescriptor]:
        return self._range(self.resolver.resolve_branch, exclude_branch, include_branch)

    def commit_range(self, exclude_sha: str, include_sha: str) -> list[CommitDescriptor]:
        return self._range(self.resolver.resolve_commit, exclude_sha, include_sha)

    def _range(
        self,
        resolve: Callable[[str], git.Commit],
        exclude_ref: str,
        include_ref: str,
    ) -> list[CommitDescriptor]:
        exclude = resolve(exclude_ref)
        include = resolve(include_ref)

        if exclude.hexsha == include.hexsha:
            logger.debug("git.range_empty", sha=include.hexsha)
            return []

        commits = self.repository.iter_commits(exclude=exclude, include=include)
        return [self.repository.describe_commit(c) for c in commits]
