"""time_mcp: servidor MCP mínimo por stdio (JSON-RPC 2.0, una línea por mensaje)."""
from .config import SERVER_NAME, SERVER_VERSION

__all__ = ["SERVER_NAME", "SERVER_VERSION"]
