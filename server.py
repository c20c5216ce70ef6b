"""FastMCP entry point for the code assistant."""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from assistant.config import (
    SERVER_HOST,
    SERVER_NAME,
    SERVER_PORT,
    SERVER_VERSION,
    GatewayConfig,
)
from assistant.engine import SuggestionEngine
from assistant.llm import create_gateway
from assistant.mcp_tools import register_tools

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
    datefmt="%H:%M:%S",
)
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("boto3").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)


def create_server(config: GatewayConfig | None = None) -> FastMCP:
    """Create and configure the FastMCP server instance."""
    gateway = create_gateway(config or GatewayConfig.from_env())
    if not gateway.is_available():
        logging.getLogger(__name__).warning(
            "No credential for AI provider '%s'; serving static analysis only",
            gateway.provider,
        )

    mcp = FastMCP(
        name=SERVER_NAME,
        version=SERVER_VERSION,
    )
    register_tools(mcp, SuggestionEngine(gateway))
    return mcp


# Module-level server instance (used by FastMCP CLI and stdio transport)
mcp = create_server()


def main() -> None:
    """Entry point — runs as streamable HTTP MCP server."""
    logging.getLogger(__name__).info(
        "Starting %s v%s on %s:%d",
        SERVER_NAME,
        SERVER_VERSION,
        SERVER_HOST,
        SERVER_PORT,
    )
    try:
        mcp.run(
            transport="streamable-http",
            host=SERVER_HOST,
            port=SERVER_PORT,
        )
    except OSError as e:
        logging.getLogger(__name__).error("Server failed to start: %s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
