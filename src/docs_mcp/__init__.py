"""docs-mcp: documentation indexing and hybrid search over MCP."""

__version__ = "0.1.0"
