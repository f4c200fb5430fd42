"""Error types raised by GitVision MCP tools."""


class MCPError(Exception):
    """Base error for MCP tool failures."""

    pass


class ValidationError(MCPError):
    """Tool arguments failed validation."""

    pass


class NotFoundError(MCPError):
    """Repository, branch or commit could not be found."""

    pass
