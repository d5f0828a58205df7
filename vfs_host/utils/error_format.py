"""Safe error message formatting utilities.

Network and filesystem exceptions raised while loading a module graph often
have an empty ``str()`` (``httpx.ReadTimeout()``, ``TimeoutError()``), which
turns log lines into ``"... failed: "``. Everything that puts an exception
into a message goes through ``format_error_message``.
"""

from __future__ import annotations

import asyncio

import httpx
from rich.markup import escape as _escape_markup

# Friendly messages for exception types known to have empty str()
FRIENDLY_MESSAGES: dict[type, str] = {
    httpx.TimeoutException: "Request timed out.",
    httpx.NetworkError: "Network error while contacting the server.",
    TimeoutError: "Request timed out.",
    asyncio.CancelledError: "Operation was cancelled.",
    ConnectionResetError: "Connection was reset by the server.",
    UnicodeDecodeError: "Content is not valid UTF-8 text.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a useful display message.

    Args:
        e: The exception to format
        include_type: Whether to include the exception type name

    Returns:
        A non-empty message

    Examples:
        >>> format_error_message(TimeoutError())
        'TimeoutError: Request timed out.'

        >>> format_error_message(ValueError("invalid input"))
        'ValueError: invalid input'

        >>> format_error_message(ValueError("invalid input"), include_type=False)
        'invalid input'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}"

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings.

    Virtual paths such as ``/https/esm.sh/react@18[...]`` and exception
    messages may contain brackets Rich would otherwise read as tags.
    """
    return _escape_markup(str(value))
