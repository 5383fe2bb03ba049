"""Shared context types for the MCP server.

Kept separate from server and tools modules to avoid circular imports.
"""

from dataclasses import dataclass

from mcp.server.fastmcp import Context
from mcp.server.session import ServerSession

from .engine import PatchEngine
from .engine.patch_config import PatchConfigLoader


@dataclass
class AppContext:
    """Shared resources for MCP tools, created once at server startup.

    A single PatchEngine serves every tool call, so its per-path locks
    serialize concurrent patches to the same file across requests.
    """

    engine: PatchEngine
    config_loader: PatchConfigLoader


# Type alias for MCP tool context parameter
AppContextType = Context[ServerSession, AppContext]


__all__ = ["AppContext", "AppContextType"]
