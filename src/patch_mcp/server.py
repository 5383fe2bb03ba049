"""FastMCP server initialization for patch-mcp.

This module initializes the MCP server and manages the shared PatchEngine via
lifespan context. All tool implementations are in the tools module.

- Lifespan context manager builds the engine from PatchConfigLoader settings
- Context injection gives tools access to the engine
- FastMCP server with stdio transport
"""

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from .context import AppContext, AppContextType
from .engine import PatchEngine
from .engine.patch_config import PatchConfigLoader

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV_VAR = "PATCH_MCP_LOG_LEVEL"


@asynccontextmanager
async def app_lifespan(_server: FastMCP) -> AsyncIterator[AppContext]:
    """Create the shared PatchEngine for the lifetime of the server.

    Environment Variables:
        PATCH_MCP_CONFIG: Path to a YAML settings file (optional)

    Args:
        _server: FastMCP server instance (unused, required by FastMCP signature)

    Yields:
        AppContext holding the engine and its config loader
    """
    logger.info("Initializing patch engine...")

    config_loader = PatchConfigLoader()
    settings = config_loader.load_config()
    engine = PatchEngine(settings=settings)

    working_dir = settings.working_dir or "current directory"
    logger.info(
        f"Patch engine ready: strategies={engine.registry.list_types()}, working_dir={working_dir}"
    )
    if not settings.allow_outside_working_dir:
        logger.info("Patches are confined to the working directory")

    try:
        yield AppContext(engine=engine, config_loader=config_loader)
    finally:
        # Engine holds no open files or connections between calls
        logger.info("Shutting down MCP server...")


# Following Python MCP naming convention: {service}_mcp
mcp = FastMCP("patch_mcp", lifespan=app_lifespan)


def configure_logging() -> None:
    """Configure stderr logging at the level from PATCH_MCP_LOG_LEVEL (default INFO)."""
    valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    log_level_str = os.getenv(LOG_LEVEL_ENV_VAR, "INFO").upper()

    if log_level_str not in valid_log_levels:
        print(
            f"Warning: Invalid {LOG_LEVEL_ENV_VAR} '{log_level_str}'. "
            f"Valid levels: {', '.join(sorted(valid_log_levels))}. "
            "Using INFO.",
            file=sys.stderr,
        )
        log_level_str = "INFO"

    # stdout is the MCP channel, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, log_level_str),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main() -> None:
    """Entry point for running the MCP server over stdio.

    Invoked via ``patch-mcp`` or ``python -m patch_mcp``.
    """
    configure_logging()
    logger.info("Starting MCP server (press Ctrl+C to stop)...")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down gracefully...")
    except Exception as e:
        logger.exception(f"Server error: {e}")
        sys.exit(1)

    logger.info("Server shutdown complete")


__all__ = [
    "mcp",
    "main",
    "app_lifespan",
    "configure_logging",
    "AppContext",
    "AppContextType",
]
