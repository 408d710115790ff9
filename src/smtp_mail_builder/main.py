"""Console entrypoint for the SMTP mail builder MCP server."""

import asyncio
import logging
import os
import sys

from .server import _run


def main() -> None:
    """Start the MCP stdio server."""
    # stdout carries the MCP protocol, so logs go to stderr
    log_level = os.getenv("SMTP_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    asyncio.run(_run())
