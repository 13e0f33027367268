"""Exception hierarchy shared by the parser, the HTTP client and the cogs.

Every per-command failure derives from :class:`BotError`, so a cog only has to
catch one type to turn it into a reply. ``user_message`` is the text that ends
up in Discord; ``str(error)`` is the detailed version that goes to the log.
"""

from __future__ import annotations


class BotError(Exception):
    """Base class for errors that are reported back to the user."""

    user_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)


# --- Link parsing ---
class ParseError(BotError):
    """Raised when a beatmap link cannot be turned into ids."""

    user_message = "IDs returned invalid."


class InvalidUrl(ParseError):
    pass


class MissingPathSegment(ParseError):
    pass


class MissingFragment(ParseError):
    pass


class MissingFragmentSegment(ParseError):
    pass


class NotANumber(ParseError):
    pass


# --- External calls ---
class FetchError(BotError):
    """Raised when an external HTTP call fails (status, network or timeout)."""

    user_message = "Couldn't reach osu! right now, try again later."

    def __init__(self, message: str, url: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class DecodeError(BotError):
    """Raised when a downloaded payload cannot be decoded."""

    user_message = "Got something from osu! that I couldn't read."


class InvalidBeatmapData(DecodeError):
    """Raised when the .osu bytes cannot be parsed by the pp calculator."""

    user_message = "That beatmap file couldn't be parsed."


# --- Startup ---
class ConfigError(BotError):
    """Raised when a required setting is missing or malformed. Fatal."""
