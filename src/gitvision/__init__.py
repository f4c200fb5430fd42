"""GitVision - git history inspection exposed as MCP tools."""

__version__ = "0.1.0"
