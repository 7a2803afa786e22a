"""Presentation layer: tool surface, stdio transport and CLI."""

from tubevault.presentation.tools import ToolService
from tubevault.presentation.server import StdioServer

__all__ = ["ToolService", "StdioServer"]
