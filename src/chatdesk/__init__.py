"""chatdesk: MCP server exposing chat-support users and messages."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("chatdesk")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from chatdesk.core import ChatDeskDB, ChatMessage, User

__all__ = ["ChatDeskDB", "ChatMessage", "User", "__version__"]
