"""
Bungie response envelope validation.

Every Bungie Platform response is wrapped as::

    {"ErrorCode": 1, "ErrorStatus": "Success", "Response": {...}, ...}

A document is usable only when it decoded to an object, ``ErrorCode`` equals
the success sentinel, and ``Response`` is present and non-null. Anything else
(unknown player, maintenance, throttling, failed request) means "no data".
"""

from __future__ import annotations

from typing import Any

from destiny_client.taxonomy.platform import SUCCESS_ERROR_CODE


def has_valid_response(document: Any) -> bool:
    """Return ``True`` if ``document`` is a successful envelope with a result."""
    return (
        isinstance(document, dict)
        and document.get("ErrorCode") == SUCCESS_ERROR_CODE
        and document.get("Response") is not None
    )
