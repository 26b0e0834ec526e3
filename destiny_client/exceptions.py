"""
Exception types for the Destiny client.

Only ``EmptyRecordBookError`` ever crosses the public ``BungieClient``
boundary. ``TransportError`` and ``DecodeError`` are raised by the transport
layer and collapsed by the client into each operation's absence value.
"""

from __future__ import annotations


class DestinyClientError(RuntimeError):
    """Base class for every error raised by this package."""


class TransportError(DestinyClientError):
    """Raised when an HTTP request fails (network error or non-2xx status).

    Attributes:
        url: The URL that was requested.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"Request to {url} failed: {reason}")


class DecodeError(DestinyClientError):
    """Raised when a response body is not valid JSON."""


class EmptyRecordBookError(DestinyClientError):
    """Raised when a record book holds no records, so no progress ratio exists.

    Attributes:
        record_book_id: Identifier of the empty record book.
    """

    def __init__(self, record_book_id: str) -> None:
        self.record_book_id = record_book_id
        super().__init__(
            f"Record book '{record_book_id}' has no records; "
            "completion percentage is undefined."
        )
