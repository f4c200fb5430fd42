"""MCP server exposing GitVision's git history tools.

    from gitvision.server.main import main, create_server
    from gitvision.server.config import ServerSettings
"""

from gitvision.server.config import ServerSettings
from gitvision.server.logging import configure_logging

__all__ = [
    "ServerSettings",
    "configure_logging",
]
