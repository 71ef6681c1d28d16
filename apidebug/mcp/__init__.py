"""MCP tool layer: tool definitions, handlers and the stdio server."""
