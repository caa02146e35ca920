"""MCP server exposing PostgreSQL and Google Drive / Sheets as resources and tools."""

__version__ = "0.1.0"
