"""Branch and commit reference resolution."""

import git
import structlog

from .base import RefNotFoundError
from .repository import GitRepository

logger = structlog.get_logger(__name__)

# Checked in order; at most one prefix is stripped
BRANCH_PREFIXES = ("origin/", "remote/origin/", "local/")


def normalize_branch_name(name: str) -> str:
    """Strip the first matching origin/, remote/origin/ or local/ prefix."""
    for prefix in BRANCH_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


class RefResolver:
    """Resolves user-supplied branch names and commit ids to commits."""

    def __init__(self, repository: GitRepository) -> None:
        self.repository = repository

    def resolve_branch(self, name: str) -> git.Commit:
        """Resolve a branch, trying the normalized local name, then
        ``origin/<normalized>``, then the raw input.

        Raises:
            RefNotFoundError: If no candidate names a branch
        """
        normalized = normalize_branch_name(name)
        for candidate in (normalized, f"origin/{normalized}", name):
            ref = self.repository.resolve_branch(candidate)
            if ref is not None:
                logger.debug("git.branch_resolved", branch=name, ref=ref.path)
                return ref.commit

        raise RefNotFoundError(
            f"Branch '{name}' not found (tried local and remote variants)"
        )

    def resolve_commit(self, sha: str) -> git.Commit:
        commit = self.repository.resolve_commit(sha)
        if commit is None:
            raise RefNotFoundError(f"Commit '{sha}' not found")
        return commit

    def resolve(self, ref: str) -> git.Commit:
        """Resolve ``ref`` as a branch first, then as a commit."""
        try:
            return self.resolve_branch(ref)
        except RefNotFoundError:
            pass

        commit = self.repository.resolve_commit(ref)
        if commit is None:
            raise RefNotFoundError(
                f"Reference '{ref}' not found as a branch or commit"
            )
        return commit
