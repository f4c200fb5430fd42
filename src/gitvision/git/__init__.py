"""Git history inspection for GitVision.

Provides commit ranges, file and line level diffs, history search and
commit documentation rendering on top of GitPython.
"""

from .base import (
    ChangeKind,
    ChangeRecord,
    ChangeSet,
    CommitDescriptor,
    CommitSearchResponse,
    CommitSearchResult,
    FileLineDiffResult,
    FileSearchMatch,
    GitEngineError,
    GitServiceError,
    InvalidArgumentError,
    LineDiffRecord,
    LineSearchMatch,
    LineType,
    RefNotFoundError,
    RepositoryInvalidError,
    RepositoryNotFoundError,
)
from .changes import classify_changes
from .diff import UnifiedDiffReconstructor, parse_unified_diff
from .ranges import CommitRangeEngine
from .refs import RefResolver, normalize_branch_name
from .repository import GitRepository, open_repository
from .search import HistorySearchEngine
from .service import GitService

__all__ = [
    # Classes
    "GitService",
    "GitRepository",
    "RefResolver",
    "CommitRangeEngine",
    "UnifiedDiffReconstructor",
    "HistorySearchEngine",
    # Functions
    "open_repository",
    "normalize_branch_name",
    "classify_changes",
    "parse_unified_diff",
    # Data classes
    "ChangeKind",
    "ChangeRecord",
    "ChangeSet",
    "CommitDescriptor",
    "CommitSearchResponse",
    "CommitSearchResult",
    "FileLineDiffResult",
    "FileSearchMatch",
    "LineDiffRecord",
    "LineSearchMatch",
    "LineType",
    # Errors
    "GitServiceError",
    "InvalidArgumentError",
    "RepositoryNotFoundError",
    "RepositoryInvalidError",
    "RefNotFoundError",
    "GitEngineError",
]
