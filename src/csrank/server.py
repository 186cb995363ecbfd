"""
CSRank Web Server Entry Point

Provides the `csrank-web` command to start the FastAPI server.

Usage:
    csrank-web                    # Start on the configured port (default 3000, or $PORT)
    csrank-web --port 8000        # Start on custom port
    csrank-web --host 127.0.0.1   # Bind to localhost only
    csrank-web --reload           # Enable auto-reload for development
"""

import argparse
import logging

import uvicorn

from csrank.core.config import get_config

logger = logging.getLogger(__name__)


def main() -> None:
    """Start the CSRank Bridge web server."""
    server = get_config().server

    parser = argparse.ArgumentParser(
        description="CSRank Bridge - Web Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    csrank-web                     Start server on the configured port
    csrank-web --port 8000         Start on port 8000
    csrank-web --host 127.0.0.1    Bind to localhost only
    csrank-web --reload            Enable auto-reload (development)
        """,
    )
    parser.add_argument(
        "--host",
        default=server.host,
        help=f"Host to bind to (default: {server.host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=server.port,
        help=f"Port to bind to (default: {server.port})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: info)",
    )

    args = parser.parse_args()

    logger.info("Starting CSRank Bridge on http://%s:%s", args.host, args.port)
    logger.info("Endpoints: /auth/steam, /auth/steam/callback, /api/matchzy/webhook, /health")

    uvicorn.run(
        "csrank.api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
