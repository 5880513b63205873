"""
Exception types for the MineBot Discord bot.
"""


class MineBotError(Exception):
    """Base exception for bot errors."""
    pass


class ChannelNotFoundError(MineBotError):
    """Raised when the configured update channel cannot be resolved."""
    pass


class InvalidSessionStateError(MineBotError):
    """Raised when a quiz session is asked to make a transition it cannot make."""
    pass


class CatalogLoadError(MineBotError):
    """Raised when a catalog file exists but cannot be used."""
    pass
