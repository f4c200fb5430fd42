"""Pytest configuration and fixtures."""

import tempfile
import threading
from collections.abc import Generator
from dataclasses import dataclass
from pathlib import Path

import git
import pytest

# Enable pytest-asyncio for all tests
pytest_plugins = ("pytest_asyncio",)


APP_V1 = "line 1\nline 2\nline 3\nline 4\nline 5\n"
APP_V2 = "line 1\nline two\nline 3\nline 4\nline 5\nneedle here\n"


@dataclass
class HistoryRepo:
    """A three-commit repository and the shas of each commit, oldest first."""

    path: Path
    repo: git.Repo
    initial: str
    update: str
    reorganize: str

    @property
    def path_str(self) -> str:
        return str(self.path)


def _configure_user(repo: git.Repo) -> None:
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")


@pytest.fixture
def temp_repo() -> Generator[tuple[Path, git.Repo], None, None]:
    """Create an empty temporary git repository."""
    with tempfile.TemporaryDirectory() as tmpdir:
        repo_path = Path(tmpdir)
        repo = git.Repo.init(repo_path)
        _configure_user(repo)

        yield repo_path, repo

        repo.close()


@pytest.fixture
def history_repo(temp_repo: tuple[Path, git.Repo]) -> HistoryRepo:
    """Repository whose history adds, modifies, deletes and renames files.

    1. "Initial commit": README.md, app.py (5 lines), old_name.txt
    2. "Update app": app.py line 2 rewritten, "needle here" appended
    3. "Reorganize files": README.md deleted, old_name.txt renamed to
       new_name.txt, notes.txt added
    """
    repo_path, repo = temp_repo

    (repo_path / "README.md").write_text("# Project\n")
    (repo_path / "app.py").write_text(APP_V1)
    (repo_path / "old_name.txt").write_text("rename me\nplease\nkeep content\n")
    repo.index.add(["README.md", "app.py", "old_name.txt"])
    initial = repo.index.commit("Initial commit")

    (repo_path / "app.py").write_text(APP_V2)
    repo.index.add(["app.py"])
    update = repo.index.commit("Update app")

    repo.index.remove(["README.md"], working_tree=True)
    (repo_path / "old_name.txt").rename(repo_path / "new_name.txt")
    repo.index.remove(["old_name.txt"])
    (repo_path / "notes.txt").write_text("alpha\nbeta\n")
    repo.index.add(["new_name.txt", "notes.txt"])
    reorganize = repo.index.commit("Reorganize files")

    return HistoryRepo(
        path=repo_path,
        repo=repo,
        initial=initial.hexsha,
        update=update.hexsha,
        reorganize=reorganize.hexsha,
    )


@pytest.fixture
def branch_repo(temp_repo: tuple[Path, git.Repo]) -> tuple[Path, git.Repo, str]:
    """Repository with a ``feature`` branch two commits ahead of the default.

    Returns:
        (repo path, repo, default branch name)
    """
    repo_path, repo = temp_repo

    (repo_path / "base.txt").write_text("base\n")
    repo.index.add(["base.txt"])
    repo.index.commit("Base commit")
    default_branch = repo.active_branch.name

    feature = repo.create_head("feature")
    feature.checkout()
    (repo_path / "feature.txt").write_text("one\n")
    repo.index.add(["feature.txt"])
    repo.index.commit("Feature one")
    (repo_path / "feature.txt").write_text("one\ntwo\n")
    repo.index.add(["feature.txt"])
    repo.index.commit("Feature two")

    repo.heads[default_branch].checkout()
    return repo_path, repo, default_branch


@pytest.fixture
def cloned_repo(
    branch_repo: tuple[Path, git.Repo, str],
) -> Generator[tuple[Path, git.Repo, str], None, None]:
    """Clone of a repository that has a ``feature/x`` branch.

    The clone only has the default branch locally; ``feature/x`` and
    ``feature`` exist as remote-tracking branches under ``origin/``.
    """
    origin_path, origin, default_branch = branch_repo
    origin.create_head("feature/x", origin.heads["feature"].commit)

    with tempfile.TemporaryDirectory() as tmpdir:
        clone_path = Path(tmpdir) / "clone"
        clone = git.Repo.clone_from(str(origin_path), str(clone_path))
        _configure_user(clone)

        yield clone_path, clone, default_branch

        clone.close()


# Thread names that are expected to be long-running and should be ignored
# by the resource tracker.
_IGNORED_THREAD_PREFIXES = (
    "MainThread",
    "ThreadPoolExecutor",  # Python's ThreadPoolExecutor workers
    "asyncio_",  # Default executor used by run_in_executor
    "concurrent.futures",
    "Thread-",  # GitPython stream pumps and other unnamed threads
    "pydevd",
)


def _is_tracked_thread(t: threading.Thread) -> bool:
    """Only non-daemon threads outside the ignored prefixes are tracked."""
    if t.daemon:
        return False
    if t.name is None:
        return True
    return not any(t.name.startswith(prefix) for prefix in _IGNORED_THREAD_PREFIXES)


@pytest.fixture(autouse=True)
def thread_leak_tracker(
    request: pytest.FixtureRequest,
) -> Generator[None, None, None]:
    """Fail tests that leave non-daemon threads running.

    To skip this check for a specific test, use:
        @pytest.mark.no_resource_tracking
    """
    if request.node.get_closest_marker("no_resource_tracking"):
        yield
        return

    baseline_threads = {t for t in threading.enumerate() if _is_tracked_thread(t)}

    yield

    current_threads = {t for t in threading.enumerate() if _is_tracked_thread(t)}
    leaked_threads = current_threads - baseline_threads
    if leaked_threads:
        thread_names = [t.name for t in leaked_threads]
        pytest.fail(
            f"Thread leak detected - {len(leaked_threads)} thread(s): {thread_names}. "
            "Tests must join all threads before completion."
        )


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "no_resource_tracking: skip resource leak checking for this test",
    )
