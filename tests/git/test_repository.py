"""Tests for the GitPython-backed repository handle."""

import tempfile
from datetime import UTC

import pytest

from gitvision.git import (
    ChangeKind,
    GitRepository,
    GitServiceError,
    RepositoryInvalidError,
    RepositoryNotFoundError,
    open_repository,
)


class TestOpenRepository:
    """Tests for opening and closing repository handles."""

    def test_nonexistent_path(self):
        with pytest.raises(RepositoryNotFoundError):
            GitRepository("/nonexistent/path/for/gitvision")

    def test_directory_without_git(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(RepositoryInvalidError):
                GitRepository(tmpdir)

    def test_context_manager_yields_handle(self, history_repo):
        with open_repository(history_repo.path_str) as repository:
            assert repository.repo_path == history_repo.path.resolve()

    def test_errors_are_git_service_errors(self):
        """Both open failures share the GitServiceError base."""
        with pytest.raises(GitServiceError):
            with open_repository("/nonexistent/path/for/gitvision"):
                pass


class TestIterCommits:
    """Tests for commit traversal."""

    def test_newest_first(self, history_repo):
        with open_repository(history_repo.path_str) as repository:
            commits = repository.iter_commits()

        assert [c.hexsha for c in commits] == [
            history_repo.reorganize,
            history_repo.update,
            history_repo.initial,
        ]

    def test_limit(self, history_repo):
        with open_repository(history_repo.path_str) as repository:
            commits = repository.iter_commits(limit=2)

        assert len(commits) == 2

    def test_exclude_include(self, history_repo):
        with open_repository(history_repo.path_str) as repository:
            exclude = repository.resolve_commit(history_repo.initial)
            include = repository.resolve_commit(history_repo.reorganize)
            commits = repository.iter_commits(exclude=exclude, include=include)

        assert [c.hexsha for c in commits] == [
            history_repo.reorganize,
            history_repo.update,
        ]

    def test_empty_repository(self, temp_repo):
        repo_path, _ = temp_repo
        with open_repository(str(repo_path)) as repository:
            assert repository.iter_commits() == []


class TestDescribeCommit:
    """Tests for commit descriptors."""

    def test_root_commit_has_no_changes(self, history_repo):
        with open_repository(history_repo.path_str) as repository:
            commit = repository.resolve_commit(history_repo.initial)
            descriptor = repository.describe_commit(commit)

        assert descriptor.sha == history_repo.initial
        assert descriptor.message.startswith("Initial commit")
        assert descriptor.author == "Test User"
        assert descriptor.author_email == "test@example.com"
        assert descriptor.timestamp.tzinfo == UTC
        assert descriptor.changed_files == []
        assert descriptor.changes == []

    def test_changes_relative_to_first_parent(self, history_repo):
        with open_repository(history_repo.path_str) as repository:
            commit = repository.resolve_commit(history_repo.reorganize)
            descriptor = repository.describe_commit(commit)

        assert set(descriptor.changed_files) == {
            "README.md",
            "new_name.txt",
            "notes.txt",
        }
        assert "Deleted: README.md" in descriptor.changes
        assert "Renamed: new_name.txt" in descriptor.changes
        assert "Added: notes.txt" in descriptor.changes


class TestDiffTrees:
    """Tests for tree-to-tree change records."""

    def test_statuses(self, history_repo):
        with open_repository(history_repo.path_str) as repository:
            old = repository.resolve_commit(history_repo.initial)
            new = repository.resolve_commit(history_repo.reorganize)
            records = {r.path: r for r in repository.diff_trees(old, new)}

        assert records["app.py"].status is ChangeKind.MODIFIED
        assert records["README.md"].status is ChangeKind.DELETED
        assert records["notes.txt"].status is ChangeKind.ADDED
        assert records["new_name.txt"].status is ChangeKind.RENAMED
        assert records["new_name.txt"].old_path == "old_name.txt"

    def test_identical_trees(self, history_repo):
        with open_repository(history_repo.path_str) as repository:
            commit = repository.resolve_commit(history_repo.update)
            assert repository.diff_trees(commit, commit) == []


class TestBlobs:
    """Tests for file lookups at a commit."""

    def test_has_file(self, history_repo):
        with open_repository(history_repo.path_str) as repository:
            initial = repository.resolve_commit(history_repo.initial)
            latest = repository.resolve_commit(history_repo.reorganize)

            assert repository.has_file(initial, "README.md")
            assert not repository.has_file(latest, "README.md")
            assert not repository.has_file(initial, "missing.txt")

    def test_blob_lines(self, history_repo):
        with open_repository(history_repo.path_str) as repository:
            commit = repository.resolve_commit(history_repo.initial)
            assert repository.blob_lines(commit, "app.py") == [
                "line 1",
                "line 2",
                "line 3",
                "line 4",
                "line 5",
            ]
            assert repository.blob_line_count(commit, "app.py") == 5
            assert repository.blob_line_count(commit, "missing.txt") == 0

    def test_blob_lines_split_on_newline_only(self, temp_repo):
        repo_path, repo = temp_repo
        (repo_path / "feed.txt").write_bytes(b"a\rb\x0cc\x1cd\nsecond")
        (repo_path / "empty.txt").write_bytes(b"")
        repo.index.add(["feed.txt", "empty.txt"])
        sha = repo.index.commit("Add control characters").hexsha

        with open_repository(str(repo_path)) as repository:
            commit = repository.resolve_commit(sha)
            assert repository.blob_lines(commit, "feed.txt") == [
                "a\rb\x0cc\x1cd",
                "second",
            ]
            assert repository.blob_line_count(commit, "empty.txt") == 0

    def test_binary_blob_has_no_lines(self, temp_repo):
        repo_path, repo = temp_repo
        (repo_path / "binary.bin").write_bytes(b"\x00\x01\x02\x03\x04")
        repo.index.add(["binary.bin"])
        sha = repo.index.commit("Add binary file").hexsha

        with open_repository(str(repo_path)) as repository:
            commit = repository.resolve_commit(sha)
            assert repository.has_file(commit, "binary.bin")
            assert repository.blob_lines(commit, "binary.bin") == []


class TestBranches:
    """Tests for branch listing and remotes."""

    def test_local_branches(self, branch_repo):
        repo_path, _, default_branch = branch_repo
        with open_repository(str(repo_path)) as repository:
            assert set(repository.local_branches()) == {default_branch, "feature"}
            assert repository.remote_branches() == []

    def test_remote_branches(self, cloned_repo):
        clone_path, _, _ = cloned_repo
        with open_repository(str(clone_path)) as repository:
            remote = repository.remote_branches()

        assert "origin/feature" in remote
        assert "origin/feature/x" in remote

    def test_fetch_missing_remote(self, branch_repo):
        repo_path, _, _ = branch_repo
        with open_repository(str(repo_path)) as repository:
            assert repository.fetch("origin") is False

    def test_fetch_from_origin(self, cloned_repo):
        clone_path, _, _ = cloned_repo
        with open_repository(str(clone_path)) as repository:
            assert repository.fetch("origin") is True
