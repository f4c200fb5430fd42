"""Main entry point for the GitVision server."""

import argparse
import asyncio
from pathlib import Path
from typing import Any

import structlog
from mcp.server import Server
from mcp.server.stdio import stdio_server

from gitvision import __version__
from gitvision.server.config import ServerSettings
from gitvision.server.logging import LOG_FORMATS, configure_logging
from gitvision.server.tools import ServiceContainer, ToolFunc, register_all_tools


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Command-line values override the matching GITVISION_* settings.
    """
    parser = argparse.ArgumentParser(
        description="GitVision MCP Server - git history, diffs and search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gitvision-server                          # Serve the current directory over stdio
  gitvision-server --repo ~/src/project     # Serve a specific repository
  gitvision-server --log-format console     # Human-readable logs on stderr
""",
    )
    parser.add_argument(
        "--repo",
        dest="repo_path",
        default=None,
        help="Default repository path (default: GITVISION_REPO_PATH or CWD)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: GITVISION_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Log output format (default: GITVISION_LOG_FORMAT or json)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> ServerSettings:
    overrides = {
        key: value
        for key, value in (
            ("repo_path", args.repo_path),
            ("log_level", args.log_level),
            ("log_format", args.log_format),
        )
        if value is not None
    }
    return ServerSettings(**overrides)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the MCP server."""
    args = parse_args(argv)
    settings = load_settings(args)

    configure_logging(log_level=settings.log_level, log_format=settings.log_format)
    logger = structlog.get_logger()

    logger.info("gitvision.starting", version=__version__, transport="stdio")

    _validate_configuration(settings, logger)

    try:
        asyncio.run(_run_stdio_server(settings, logger))
    except KeyboardInterrupt:
        logger.info("server.shutdown", reason="keyboard_interrupt")
    except Exception as e:
        logger.error("server.error", error=str(e), exc_info=True)
        raise


def _validate_configuration(settings: ServerSettings, logger: Any) -> None:
    """Warn early about a default repository that cannot be served.

    Tools still accept an explicit path, so this never stops the server.
    """
    if not settings.repo_path:
        return
    repo_path = Path(settings.repo_path).expanduser()
    if not repo_path.exists():
        logger.warning("git_repo.missing", repo_path=settings.repo_path)
    elif not (repo_path / ".git").exists():
        logger.warning(
            "git_repo.invalid",
            repo_path=settings.repo_path,
            note="Path has no .git directory; calls without a path will fail",
        )


async def _run_stdio_server(settings: ServerSettings, logger: Any) -> None:
    """Run the MCP server with stdio transport."""
    logger.info("server.starting")

    server, _services, _tool_registry = create_server(settings)

    async with stdio_server() as (read_stream, write_stream):
        logger.info("server.ready", transport="stdio")
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )

    logger.info("server.stopped")


def create_server(
    settings: ServerSettings,
) -> tuple[Server, ServiceContainer, dict[str, ToolFunc]]:
    """Create and configure the MCP server.

    Args:
        settings: Server configuration

    Returns:
        Tuple of (Server, ServiceContainer, tool_registry). tool_registry
        maps tool names to async functions.
    """
    logger = structlog.get_logger()

    server = Server("gitvision")
    services, tool_registry = register_all_tools(server, settings)

    logger.info("server.created", server_name=server.name)
    return server, services, tool_registry


if __name__ == "__main__":
    main()
