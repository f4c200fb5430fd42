"""MCP tool implementations and service container."""

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog
from mcp.server import Server
from mcp.types import TextContent, Tool

from gitvision.git import GitService
from gitvision.server.config import ServerSettings

logger = structlog.get_logger()

ToolFunc = Callable[..., Awaitable[Any]]

_PATH_PROPERTY = {
    "type": "string",
    "description": "Repository path (default: configured repository, then CWD)",
}

_FORMAT_PROPERTY = {
    "type": "string",
    "description": "Documentation format (default: markdown)",
    "enum": ["markdown", "html", "text"],
}


def _commit_pair_properties() -> dict[str, Any]:
    return {
        "commit1": {
            "type": "string",
            "description": "Old side: commit sha, short sha or other revision",
        },
        "commit2": {
            "type": "string",
            "description": "New side: commit sha, short sha or other revision",
        },
    }


@dataclass
class ServiceContainer:
    """Container for shared services used by MCP tools."""

    git_service: GitService
    settings: ServerSettings


def initialize_services(settings: ServerSettings) -> ServiceContainer:
    """Build the services shared by every tool.

    Args:
        settings: Server configuration

    Returns:
        ServiceContainer wired from settings
    """
    git_service = GitService(
        context_lines=settings.context_lines,
        default_remote=settings.default_remote,
    )
    logger.info(
        "services.initialized",
        repo_path=settings.repo_path,
        context_lines=settings.context_lines,
    )
    return ServiceContainer(git_service=git_service, settings=settings)


def _get_all_tool_definitions() -> list[Tool]:
    """Get all tool definitions with their JSON schemas.

    Every name here must have an implementation in the tool registry built
    by register_all_tools, with matching argument names.

    Returns:
        List of Tool definitions
    """
    return [
        # === History ===
        Tool(
            name="get_git_logs",
            description="List the most recent commits reachable from HEAD.",
            inputSchema={
                "type": "object",
                "properties": {
                    "max_commits": {
                        "type": "integer",
                        "description": "Max commits to return (default 50)",
                        "default": 50,
                    },
                    "path": _PATH_PROPERTY,
                },
                "required": [],
            },
        ),
        Tool(
            name="get_recent_commits",
            description="List the N most recent commits.",
            inputSchema={
                "type": "object",
                "properties": {
                    "count": {
                        "type": "integer",
                        "description": "Number of commits (default 10)",
                        "default": 10,
                    },
                    "path": _PATH_PROPERTY,
                },
                "required": [],
            },
        ),
        Tool(
            name="get_git_logs_between_branches",
            description=(
                "List commits reachable from branch2 but not from branch1. "
                "Branches may be local or remote-tracking (origin/...)."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "branch1": {"type": "string", "description": "Base branch"},
                    "branch2": {
                        "type": "string",
                        "description": "Branch whose extra commits are listed",
                    },
                    "fetch_remote": {
                        "type": "boolean",
                        "description": "Fetch the remote first (default false)",
                        "default": False,
                    },
                    "remote": {
                        "type": "string",
                        "description": "Remote to fetch (default origin)",
                    },
                    "path": _PATH_PROPERTY,
                },
                "required": ["branch1", "branch2"],
            },
        ),
        Tool(
            name="get_git_logs_between_commits",
            description="List commits reachable from commit2 but not from commit1.",
            inputSchema={
                "type": "object",
                "properties": {**_commit_pair_properties(), "path": _PATH_PROPERTY},
                "required": ["commit1", "commit2"],
            },
        ),
        # === Diffs ===
        Tool(
            name="get_changed_files_between_commits",
            description="List paths that differ between two commits.",
            inputSchema={
                "type": "object",
                "properties": {**_commit_pair_properties(), "path": _PATH_PROPERTY},
                "required": ["commit1", "commit2"],
            },
        ),
        Tool(
            name="get_detailed_diff_between_commits",
            description="Unified diff text between two commits, per changed file.",
            inputSchema={
                "type": "object",
                "properties": {
                    **_commit_pair_properties(),
                    "files": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Only include these paths",
                    },
                    "path": _PATH_PROPERTY,
                },
                "required": ["commit1", "commit2"],
            },
        ),
        Tool(
            name="get_commit_diff_info",
            description=(
                "Classify changes between two commits into added, modified, "
                "deleted and renamed files."
            ),
            inputSchema={
                "type": "object",
                "properties": {**_commit_pair_properties(), "path": _PATH_PROPERTY},
                "required": ["commit1", "commit2"],
            },
        ),
        Tool(
            name="get_file_line_diff_between_commits",
            description=(
                "Line-by-line diff of one file between two commits, with old "
                "and new line numbers."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    **_commit_pair_properties(),
                    "file_path": {
                        "type": "string",
                        "description": "Repository-relative file path",
                    },
                    "path": _PATH_PROPERTY,
                },
                "required": ["commit1", "commit2", "file_path"],
            },
        ),
        # === Search ===
        Tool(
            name="search_commits_for_string",
            description=(
                "Search recent commit messages and added lines for a "
                "case-sensitive string."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "search_string": {
                        "type": "string",
                        "description": "Substring to find; empty matches every commit",
                    },
                    "max_commits": {
                        "type": "integer",
                        "description": "Commits to search from HEAD (default 100)",
                        "default": 100,
                    },
                    "path": _PATH_PROPERTY,
                },
                "required": ["search_string"],
            },
        ),
        # === Branches ===
        Tool(
            name="get_local_branches",
            description="List local branch names.",
            inputSchema={
                "type": "object",
                "properties": {"path": _PATH_PROPERTY},
                "required": [],
            },
        ),
        Tool(
            name="get_remote_branches",
            description="List remote-tracking branch names.",
            inputSchema={
                "type": "object",
                "properties": {"path": _PATH_PROPERTY},
                "required": [],
            },
        ),
        Tool(
            name="get_all_branches",
            description="List all branches, prefixed with local/ or remote/.",
            inputSchema={
                "type": "object",
                "properties": {"path": _PATH_PROPERTY},
                "required": [],
            },
        ),
        Tool(
            name="fetch_from_remote",
            description="Fetch from a remote. Reports success instead of failing.",
            inputSchema={
                "type": "object",
                "properties": {
                    "remote": {
                        "type": "string",
                        "description": "Remote name (default origin)",
                    },
                    "path": _PATH_PROPERTY,
                },
                "required": [],
            },
        ),
        # === Documentation ===
        Tool(
            name="generate_git_documentation",
            description="Render recent commits as markdown, html or text.",
            inputSchema={
                "type": "object",
                "properties": {
                    "max_commits": {
                        "type": "integer",
                        "description": "Commits to document (default 50)",
                        "default": 50,
                    },
                    "output_format": _FORMAT_PROPERTY,
                    "path": _PATH_PROPERTY,
                },
                "required": [],
            },
        ),
        Tool(
            name="generate_git_documentation_to_file",
            description="Render recent commits and write them to a file.",
            inputSchema={
                "type": "object",
                "properties": {
                    "file_path": {
                        "type": "string",
                        "description": "Output file (relative to the repository)",
                    },
                    "max_commits": {
                        "type": "integer",
                        "description": "Commits to document (default 50)",
                        "default": 50,
                    },
                    "output_format": _FORMAT_PROPERTY,
                    "path": _PATH_PROPERTY,
                },
                "required": ["file_path"],
            },
        ),
        Tool(
            name="compare_branches_documentation",
            description=(
                "Write documentation for commits on branch2 that are not on branch1."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "branch1": {"type": "string", "description": "Base branch"},
                    "branch2": {"type": "string", "description": "Compared branch"},
                    "file_path": {
                        "type": "string",
                        "description": "Output file (relative to the repository)",
                    },
                    "output_format": _FORMAT_PROPERTY,
                    "fetch_remote": {
                        "type": "boolean",
                        "description": "Fetch the remote first (default false)",
                        "default": False,
                    },
                    "path": _PATH_PROPERTY,
                },
                "required": ["branch1", "branch2", "file_path"],
            },
        ),
        Tool(
            name="compare_commits_documentation",
            description=(
                "Write documentation for commits reachable from commit2 but "
                "not from commit1."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    **_commit_pair_properties(),
                    "file_path": {
                        "type": "string",
                        "description": "Output file (relative to the repository)",
                    },
                    "output_format": _FORMAT_PROPERTY,
                    "path": _PATH_PROPERTY,
                },
                "required": ["commit1", "commit2", "file_path"],
            },
        ),
        # === Health ===
        Tool(
            name="ping",
            description="Health check. Returns pong.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": [],
            },
        ),
    ]


def build_tool_registry(services: ServiceContainer) -> dict[str, ToolFunc]:
    """Map every tool name to its implementation."""
    from .documentation import get_documentation_tools
    from .git import get_git_tools

    tool_registry: dict[str, ToolFunc] = {}
    tool_registry.update(get_git_tools(services))
    tool_registry.update(get_documentation_tools(services))

    async def ping_impl() -> str:
        return "pong"

    tool_registry["ping"] = ping_impl
    return tool_registry


async def dispatch_tool_call(
    tool_registry: dict[str, ToolFunc],
    name: str,
    arguments: dict[str, Any] | None,
) -> list[TextContent]:
    """Run one tool and wrap its result as text content.

    Args:
        tool_registry: Tool name to implementation mapping
        name: Tool name
        arguments: Tool arguments dict

    Returns:
        Tool result as a list of content items
    """
    if name not in tool_registry:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    tool_func = tool_registry[name]

    try:
        result = await tool_func(**(arguments or {}))

        if isinstance(result, str):
            return [TextContent(type="text", text=result)]
        elif isinstance(result, dict | list):
            return [TextContent(type="text", text=json.dumps(result, default=str))]
        else:
            return [TextContent(type="text", text=str(result))]

    except Exception as e:
        logger.error("tool.call_failed", tool=name, error=str(e), exc_info=True)
        return [TextContent(type="text", text=f"Error: {str(e)}")]


def register_all_tools(
    server: Server,
    settings: ServerSettings,
) -> tuple[ServiceContainer, dict[str, ToolFunc]]:
    """Register all MCP tools with the server.

    Args:
        server: MCP Server instance
        settings: Server configuration

    Returns:
        Tuple of (ServiceContainer, tool_registry)
    """
    services = initialize_services(settings)
    tool_registry = build_tool_registry(services)

    @server.call_tool()  # type: ignore[untyped-decorator]
    async def handle_call_tool(
        name: str, arguments: dict[str, Any]
    ) -> list[TextContent]:
        return await dispatch_tool_call(tool_registry, name, arguments)

    @server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
    async def handle_list_tools() -> list[Tool]:
        """Return all available tools with their schemas.

        Without this handler clients cannot discover the tools.
        """
        return _get_all_tool_definitions()

    logger.info("tools.registered", tool_count=len(tool_registry))
    return services, tool_registry
