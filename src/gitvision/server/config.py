"""Server configuration using pydantic-settings.

Configuration can be overridden via environment variables with the
GITVISION_ prefix, e.g. GITVISION_LOG_LEVEL=DEBUG.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Configuration for the GitVision MCP server."""

    model_config = SettingsConfigDict(env_prefix="GITVISION_")

    # =========================================================================
    # Git configuration
    # =========================================================================

    repo_path: str | None = Field(
        default=None,
        description=(
            "Default git repository used when a tool call omits its path. "
            "Falls back to the current working directory if not set."
        ),
    )

    default_remote: str = Field(
        default="origin",
        description="Remote fetched by remote-aware branch comparisons",
    )

    context_lines: int = Field(
        default=3,
        description="Context lines around each hunk of a unified diff",
    )

    # =========================================================================
    # Limits
    # =========================================================================

    default_max_commits: int = Field(
        default=50,
        description="Commits returned by get_git_logs when no limit is given",
    )

    max_commits_limit: int = Field(
        default=1000,
        description="Upper bound accepted for any max_commits argument",
    )

    search_max_commits: int = Field(
        default=100,
        description="Commits traversed by search_commits_for_string by default",
    )

    # =========================================================================
    # Documentation
    # =========================================================================

    documentation_format: str = Field(
        default="markdown",
        description='Default documentation format: "markdown", "html" or "text"',
    )

    # =========================================================================
    # Logging configuration
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    log_format: str = Field(
        default="json",
        description=(
            'Logging format: "json" for structured logs, '
            '"console" for human-readable'
        ),
    )

    def resolve_repo_path(self, path: str | None = None) -> str:
        """Pick the repository for a call: explicit path, configured, or CWD."""
        if path:
            return path
        if self.repo_path:
            return str(Path(self.repo_path).expanduser())
        return str(Path.cwd())
