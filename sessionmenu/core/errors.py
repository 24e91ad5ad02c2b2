"""Error types for snapshot loading and session actions."""

from sessionmenu.constants import NO_CONNECTION_TEXT, SESSIONS_UNAVAILABLE_TEXT


class SessionMenuError(Exception):
    """Base class for sessionmenu errors."""


class SessionLoadError(SessionMenuError):
    """Snapshot fetch failed; carries the short text shown in the menu."""

    display_text = SESSIONS_UNAVAILABLE_TEXT


class GatewayUnavailableError(SessionLoadError):
    """The gateway could not be reached."""

    display_text = NO_CONNECTION_TEXT


class GatewayRejectedError(SessionLoadError):
    """The gateway was reached but answered the request with an error status."""

    display_text = SESSIONS_UNAVAILABLE_TEXT


class DecodeFailedError(SessionLoadError):
    """The gateway answered but the payload could not be decoded."""

    display_text = SESSIONS_UNAVAILABLE_TEXT


class ActionFailedError(SessionMenuError):
    """A user-invoked session action failed.

    Attributes:
        title: Human readable title naming the failed operation ("Reset failed").
        cause: The underlying executor error.
    """

    def __init__(self, title: str, cause: BaseException) -> None:
        super().__init__(f"{title}: {cause}")
        self.title = title
        self.cause = cause


def compact_error(error: BaseException) -> str:
    """Map a fetch failure to the short status text stored in the cache."""
    if isinstance(error, SessionLoadError):
        return error.display_text
    return SESSIONS_UNAVAILABLE_TEXT
