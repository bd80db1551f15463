"""Main entry point for the docs-mcp MCP server."""

import argparse
import logging
import sys
from pathlib import Path

from fastmcp import FastMCP

from docs_mcp.config import Config, get_config
from docs_mcp.engine import DocsEngine
from docs_mcp.tools import register_tools

logger = logging.getLogger(__name__)


def create_server(
    config: Config | None = None, engine: DocsEngine | None = None
) -> tuple[FastMCP, DocsEngine]:
    """Create and configure the MCP server.

    The engine is created but not started; call ``engine.start_background()``
    before serving.

    Args:
        config: Configuration; defaults to the global configuration
        engine: Engine to expose; defaults to a DocsEngine for config
    """
    config = config or get_config()
    engine = engine or DocsEngine(config)

    mcp = FastMCP(
        name="docs-mcp",
        instructions=(
            "docs-mcp indexes the documentation files of a project (Markdown, "
            "reStructuredText, AsciiDoc and plain text). Use the search_docs tool "
            "to find relevant sections instead of reading files one by one."
        ),
    )

    logger.info("Registering tools...")
    register_tools(mcp, engine)

    logger.info("Server configured successfully")
    return mcp, engine


def main() -> None:
    """Main function - starts the MCP server."""
    # stdout may carry the stdio transport, so logs go to stderr
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    parser = argparse.ArgumentParser(description="docs-mcp - documentation search MCP server")
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Project root to index (overrides DOCS_ROOT)",
    )
    parser.add_argument(
        "--reindex",
        action="store_true",
        help="Ignore the persisted index and rebuild it on startup",
    )
    args = parser.parse_args()

    try:
        config = Config.from_env(root_override=args.root)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)

    logger.info("=" * 50)
    logger.info("docs-mcp starting...")
    logger.info("  ROOT:      %s", config.root)
    logger.info("  INDEX:     %s", config.index_path)
    logger.info(
        "  CHUNKING:  %d-%d tokens, split at headings: %s",
        config.chunking.min_tokens,
        config.chunking.max_tokens,
        config.chunking.split_at_headings,
    )
    logger.info("  MODEL:     %s", config.embed_model)
    logger.info("  WATCH:     %s", config.watch)
    logger.info("=" * 50)

    engine: DocsEngine | None = None
    try:
        mcp, engine = create_server(config)
        engine.start_background(force_reindex=args.reindex)
        logger.info("Starting MCP server (%s transport)...", config.transport)
        mcp.run(transport=config.transport)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception:
        logger.exception("Server error")
        sys.exit(1)
    finally:
        if engine is not None:
            engine.stop()


if __name__ == "__main__":
    main()
