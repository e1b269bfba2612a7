#!/usr/bin/env python3
"""
MCP Org Excalidraw - Entry Point

Supports multiple transport modes:
- stdio: Standard I/O (default, for Claude Desktop)
- sse: Server-Sent Events over HTTP
- http: Streamable HTTP transport

With --watch-only no MCP server is started; the drawing directory is watched
and previews regenerated until interrupted.
"""

import argparse
import logging
import os
import sys
import time


def _watch_forever():
    from .app import setup
    from .config import Settings

    try:
        app = setup(Settings.from_env())
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        app.close()


def main():
    parser = argparse.ArgumentParser(
        description="MCP server linking Org documents to Excalidraw drawings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with STDIO transport (default, for Claude Desktop)
  mcp-org-excalidraw

  # Run with SSE transport on port 8080
  mcp-org-excalidraw --transport sse --port 8080

  # Keep drawings in a custom directory
  mcp-org-excalidraw --directory ~/notes/drawings

  # Only regenerate previews, no MCP server
  mcp-org-excalidraw --watch-only

Note: Previews require excalidraw_export (npm install -g excalidraw_export).
"""
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "http"],
        default="stdio",
        help="Transport mode (default: stdio)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for SSE/HTTP transport (default: 8080)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind for SSE/HTTP transport (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--project-dir",
        type=str,
        default=os.getcwd(),
        help="Directory Org documents are resolved against (default: current directory)"
    )
    parser.add_argument(
        "--directory",
        type=str,
        help="Drawing directory (default: $ORG_EXCALIDRAW_DIRECTORY or ~/org-excalidraw)"
    )
    parser.add_argument(
        "--link-prefix",
        type=str,
        help="Org link type for drawings (default: excalidraw)"
    )
    parser.add_argument(
        "--watch-only",
        action="store_true",
        help="Watch the drawing directory without starting the MCP server"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__import__('mcp_org_excalidraw').__version__}"
    )

    args = parser.parse_args()

    # stdout belongs to the stdio transport
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Set configuration environment variables
    os.environ["MCP_PROJECT_DIR"] = os.path.abspath(args.project_dir)
    if args.directory:
        os.environ["ORG_EXCALIDRAW_DIRECTORY"] = args.directory
    if args.link_prefix:
        os.environ["ORG_EXCALIDRAW_LINK_PREFIX"] = args.link_prefix

    if args.watch_only:
        _watch_forever()
        return

    # Import server after setting environment
    from .server import mcp

    if args.transport == "stdio":
        # Standard STDIO transport (default)
        mcp.run()

    elif args.transport == "sse":
        # SSE transport
        try:
            from mcp.server.sse import SseServerTransport
            from starlette.applications import Starlette
            from starlette.routing import Route
            import uvicorn

            sse = SseServerTransport("/messages/")

            async def handle_sse(request):
                async with sse.connect_sse(
                    request.scope, request.receive, request._send
                ) as streams:
                    await mcp._mcp_server.run(
                        streams[0], streams[1], mcp._mcp_server.create_initialization_options()
                    )

            app = Starlette(
                routes=[
                    Route("/sse", endpoint=handle_sse),
                    Route("/messages/", endpoint=sse.handle_post_message, methods=["POST"]),
                ],
            )

            print(f"Starting SSE server on {args.host}:{args.port}", file=sys.stderr)
            print(f"SSE endpoint: http://{args.host}:{args.port}/sse", file=sys.stderr)
            uvicorn.run(app, host=args.host, port=args.port)

        except ImportError as e:
            print(f"Error: SSE transport requires additional dependencies: {e}")
            print("Install with: pip install 'mcp-org-excalidraw[sse]'")
            sys.exit(1)

    elif args.transport == "http":
        # Streamable HTTP transport
        mcp.settings.host = args.host
        mcp.settings.port = args.port
        print(f"Starting HTTP server on {args.host}:{args.port}", file=sys.stderr)
        print(f"MCP endpoint: http://{args.host}:{args.port}/mcp", file=sys.stderr)
        mcp.run(transport="streamable-http")


if __name__ == "__main__":
    main()
