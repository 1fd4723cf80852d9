"""Process-level exceptions.

Domain failures inside tool and resource handlers never raise; they are
returned as envelopes. These exceptions cover startup only.
"""

from __future__ import annotations


class ChatDeskError(Exception):
    """Base class for chatdesk startup failures."""


class ConfigurationError(ChatDeskError):
    """Invalid or missing server configuration."""


class StartupError(ChatDeskError):
    """The server could not open its database or bind its transport."""
