"""API catalog and execution tools exposed over MCP."""

__version__ = "1.0.0"
