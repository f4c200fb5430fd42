"""Commit documentation rendering (markdown, html, plain text)."""

import html
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import structlog

from .base import CommitDescriptor

logger = structlog.get_logger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _newest_first(commits: list[CommitDescriptor]) -> list[CommitDescriptor]:
    return sorted(commits, key=lambda c: c.timestamp, reverse=True)


def _generated_on() -> str:
    return datetime.now(UTC).strftime(DATE_FORMAT)


def render_markdown(commits: list[CommitDescriptor]) -> str:
    lines = [
        "# Git Commit Documentation",
        "",
        f"Generated on: {_generated_on()}",
        f"Total commits: {len(commits)}",
        "",
    ]
    for commit in _newest_first(commits):
        lines += [
            f"## Commit: {commit.sha[:8]}",
            "",
            f"**Author:** {commit.author} <{commit.author_email}>",
            f"**Date:** {commit.timestamp.strftime(DATE_FORMAT)}",
            "",
            "**Message:**",
            "```",
            commit.message.rstrip("\n"),
            "```",
            "",
        ]
        if commit.changed_files:
            lines.append("**Changed Files:**")
            lines += [f"- {path}" for path in commit.changed_files]
            lines.append("")
        if commit.changes:
            lines.append("**Changes:**")
            lines += [f"- {change}" for change in commit.changes]
            lines.append("")
        lines += ["---", ""]
    return "\n".join(lines)


def render_html(commits: list[CommitDescriptor]) -> str:
    lines = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        "<title>Git Commit Documentation</title>",
        "<style>",
        "body { font-family: Arial, sans-serif; margin: 20px; }",
        "h2 { color: #666; border-bottom: 1px solid #ccc; }",
        "pre { background-color: #f4f4f4; padding: 10px; border-radius: 4px; }",
        "</style>",
        "</head>",
        "<body>",
        "<h1>Git Commit Documentation</h1>",
        f"<p>Generated on: {_generated_on()}</p>",
        f"<p>Total commits: {len(commits)}</p>",
    ]
    for commit in _newest_first(commits):
        lines += [
            f"<h2>Commit: {commit.sha[:8]}</h2>",
            f"<p><strong>Author:</strong> {html.escape(commit.author)} "
            f"&lt;{html.escape(commit.author_email)}&gt;</p>",
            f"<p><strong>Date:</strong> {commit.timestamp.strftime(DATE_FORMAT)}</p>",
            "<p><strong>Message:</strong></p>",
            f"<pre>{html.escape(commit.message.rstrip(chr(10)))}</pre>",
        ]
        for title, items in (
            ("Changed Files", commit.changed_files),
            ("Changes", commit.changes),
        ):
            if items:
                lines.append(f"<p><strong>{title}:</strong></p>")
                lines.append("<ul>")
                lines += [f"<li>{html.escape(item)}</li>" for item in items]
                lines.append("</ul>")
        lines.append("<hr>")
    lines += ["</body>", "</html>"]
    return "\n".join(lines)


def render_text(commits: list[CommitDescriptor]) -> str:
    lines = [
        "GIT COMMIT DOCUMENTATION",
        "========================",
        "",
        f"Generated on: {_generated_on()}",
        f"Total commits: {len(commits)}",
        "",
    ]
    for commit in _newest_first(commits):
        lines += [
            f"COMMIT: {commit.sha[:8]}",
            f"Author: {commit.author} <{commit.author_email}>",
            f"Date: {commit.timestamp.strftime(DATE_FORMAT)}",
            "",
            "Message:",
            commit.message.rstrip("\n"),
            "",
        ]
        if commit.changed_files:
            lines.append("Changed Files:")
            lines += [f"  - {path}" for path in commit.changed_files]
            lines.append("")
        if commit.changes:
            lines.append("Changes:")
            lines += [f"  - {change}" for change in commit.changes]
            lines.append("")
        lines += ["-" * 40, ""]
    return "\n".join(lines)


RENDERERS: dict[str, Callable[[list[CommitDescriptor]], str]] = {
    "markdown": render_markdown,
    "html": render_html,
    "text": render_text,
}


def render_documentation(commits: list[CommitDescriptor], fmt: str = "markdown") -> str:
    """Render commits in ``fmt``; unknown formats fall back to markdown."""
    renderer = RENDERERS.get(fmt.lower(), render_markdown)
    return renderer(commits)


def write_documentation(content: str, file_path: str | Path) -> bool:
    """Write rendered documentation, creating parent directories.

    Returns:
        True on success, False if the file could not be written
    """
    path = Path(file_path).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        logger.error("docs.write_failed", file_path=str(path), error=str(e))
        return False

    logger.info("docs.written", file_path=str(path), length=len(content))
    return True
