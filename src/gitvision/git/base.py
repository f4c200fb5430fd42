"""Exceptions, enums and dataclasses for git history inspection."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class GitServiceError(Exception):
    """Base exception for git history operations."""

    pass


class InvalidArgumentError(GitServiceError, ValueError):
    """A required argument was missing or empty."""

    pass


class RepositoryNotFoundError(GitServiceError):
    """Repository path does not exist."""

    pass


class RepositoryInvalidError(GitServiceError):
    """Path exists but is not a valid git repository."""

    pass


class RefNotFoundError(GitServiceError):
    """Branch or commit reference could not be resolved."""

    pass


class GitEngineError(GitServiceError):
    """Unexpected failure reported by the underlying git engine."""

    pass


class ChangeKind(str, Enum):
    """Status of a file in a tree-to-tree diff."""

    ADDED = "Added"
    DELETED = "Deleted"
    MODIFIED = "Modified"
    RENAMED = "Renamed"
    COPIED = "Copied"
    TYPE_CHANGED = "TypeChanged"
    UNMERGED = "Unmerged"
    UNKNOWN = "Unknown"

    @classmethod
    def from_code(cls, code: str | None) -> "ChangeKind":
        """Map git's one-letter status code (A, D, M, R...) to a ChangeKind."""
        return _CHANGE_CODES.get((code or "")[:1], cls.UNKNOWN)


_CHANGE_CODES = {
    "A": ChangeKind.ADDED,
    "D": ChangeKind.DELETED,
    "M": ChangeKind.MODIFIED,
    "R": ChangeKind.RENAMED,
    "C": ChangeKind.COPIED,
    "T": ChangeKind.TYPE_CHANGED,
    "U": ChangeKind.UNMERGED,
}


class LineType(str, Enum):
    """Classification of a reconstructed diff line."""

    HEADER = "Header"
    ADDED = "Added"
    DELETED = "Deleted"
    CONTEXT = "Context"


@dataclass(frozen=True)
class CommitDescriptor:
    """A commit and the files it changed relative to its first parent."""

    sha: str
    message: str
    author: str
    author_email: str
    timestamp: datetime  # Always UTC, timezone-aware
    changed_files: list[str] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)  # "Status: path"


@dataclass(frozen=True)
class ChangeRecord:
    """One entry of a tree-to-tree diff as reported by the engine."""

    path: str
    old_path: str
    status: ChangeKind


@dataclass
class ChangeSet:
    """File-level changes between two commits, bucketed by status."""

    commit1: str
    commit2: str
    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    renamed: list[str] = field(default_factory=list)  # "old -> new"

    @property
    def total_changes(self) -> int:
        return (
            len(self.added)
            + len(self.modified)
            + len(self.deleted)
            + len(self.renamed)
        )


@dataclass(frozen=True)
class LineDiffRecord:
    """A single classified line of a reconstructed unified diff.

    ``old_line_number`` and ``new_line_number`` are None when the line has
    no position on that side (headers, pure additions, pure deletions).
    """

    line_number: int
    old_line_number: int | None
    new_line_number: int | None
    content: str
    type: LineType

    @property
    def text(self) -> str:
        """Line content without its leading diff marker."""
        if self.type in (LineType.ADDED, LineType.DELETED):
            return self.content[1:]
        return self.content


@dataclass
class FileLineDiffResult:
    """Line-by-line diff of one file between two commits."""

    file_path: str
    commit1: str
    commit2: str
    file_exists_in_both_commits: bool = False
    lines: list[LineDiffRecord] = field(default_factory=list)
    added_lines: int = 0
    deleted_lines: int = 0
    modified_lines: int = 0  # Reserved, lines are never paired into modifications
    total_lines: int = 0
    error_message: str | None = None

    def fail(self, message: str) -> "FileLineDiffResult":
        """Record an in-band error, clearing any partially built data."""
        self.error_message = message
        self.lines = []
        self.added_lines = self.deleted_lines = self.modified_lines = 0
        self.total_lines = 0
        return self


@dataclass(frozen=True)
class LineSearchMatch:
    """An added line containing the search string."""

    line_number: int
    content: str


@dataclass
class FileSearchMatch:
    """Matching lines within one file of a commit."""

    file_name: str
    line_matches: list[LineSearchMatch] = field(default_factory=list)


@dataclass
class CommitSearchResult:
    """A commit whose message or added content matched a search."""

    sha: str
    message: str
    author: str
    timestamp: datetime
    message_match: bool = False
    file_matches: list[FileSearchMatch] = field(default_factory=list)

    @property
    def total_matches(self) -> int:
        line_matches = sum(len(f.line_matches) for f in self.file_matches)
        return (1 if self.message_match else 0) + line_matches


@dataclass
class CommitSearchResponse:
    """Aggregated result of a history search."""

    search_string: str
    total_commits_searched: int = 0
    total_matching_commits: int = 0
    results: list[CommitSearchResult] = field(default_factory=list)
    error_message: str | None = None

    @property
    def total_line_matches(self) -> int:
        return sum(
            len(file_match.line_matches)
            for result in self.results
            for file_match in result.file_matches
        )
