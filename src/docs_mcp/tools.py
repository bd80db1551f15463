"""MCP tools for the docs-mcp server.

This module defines the tools exposed by the MCP server:
- search_docs: Search documentation in exact, fuzzy or semantic (hybrid) mode
"""

from typing import Any

from fastmcp import FastMCP

from docs_mcp.engine import DocsEngine
from docs_mcp.indexer.models import SearchFilters


def apply_min_score(response: dict, min_score: float | None) -> dict:
    """Drop results scoring below min_score from a successful search response."""
    if min_score is None or not response.get("success"):
        return response
    data = response["data"]
    results = [r for r in data["results"] if r["score"] >= min_score]
    return {
        "success": True,
        "data": {**data, "results": results, "total_results": len(results)},
    }


def register_tools(mcp: FastMCP, engine: DocsEngine) -> None:
    """Register the documentation tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        engine: Engine serving the documentation index
    """

    @mcp.tool()
    def search_docs(
        query: str,
        mode: str = "semantic",
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> dict:
        """Search project documentation and return the most relevant chunks.

        Modes:
        - semantic: natural-language search (keyword and embedding scores combined)
        - exact: case-insensitive keyword search
        - fuzzy: typo-tolerant search against headings and context

        Args:
            query: Search query (e.g. "authentication setup", "API documentation")
            mode: One of "semantic", "exact", "fuzzy" (default: semantic)
            filters: Optional filters:
                - file_pattern: Glob on the file path (e.g. "docs/api/**")
                - category: List of categories (e.g. ["frontend", "security"])
                - min_score: Minimum relevance score
            limit: Maximum number of results (default: the configured limit, 10)

        Returns:
            On success: {"success": true, "data": {"results", "query", "mode",
            "total_results"}} where each result has file, line, score, context,
            heading_path, chunk_type and match_reason.
            On failure: {"success": false, "error": "..."}
        """
        try:
            search_filters = SearchFilters.from_dict(filters)
        except (TypeError, ValueError) as e:
            return {"success": False, "error": f"Invalid filters: {e}"}

        response = engine.search(query, mode=mode, filters=search_filters, limit=limit)
        return apply_min_score(response, search_filters.min_score if search_filters else None)
